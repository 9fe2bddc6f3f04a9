"""Constants for the Google Tasks listing and task records."""

TASKS_SCOPE = "https://www.googleapis.com/auth/tasks"

DEFAULT_TASK_LIST_ID = "@default"
DEFAULT_MAX_RESULTS = 100
MAX_RESULTS_LIMIT = 100

TASK_STATUS_NEEDS_ACTION = "needsAction"
TASK_STATUS_COMPLETED = "completed"
VALID_TASK_STATUSES = (TASK_STATUS_NEEDS_ACTION, TASK_STATUS_COMPLETED)

UNTITLED_PLACEHOLDER = "(untitled)"
