# eldercare/engine/__init__.py
from .sections import SectionKey, SECTION_ORDER, REQUIRED_FIELDS
from .state import AssessmentData, AssessmentFormState, SectionData, ValidationError, AuditEntry, reduce
from .validation import validate_section, validate_all
from .completion import section_completion, overall_completion, basic_section_progress
from .slums import score_cognitive, interpret_cognitive
from .gds import score_depression, interpret_depression
from .persistence import CurrentUser, PersistenceCoordinator, Created, Updated, Recreated, Failed
from .autosave import AutoSaveScheduler
from .session import AssessmentSession
