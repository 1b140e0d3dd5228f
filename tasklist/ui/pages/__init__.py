from tasklist.ui.pages.login import login_page  # noqa: F401
from tasklist.ui.pages.tasks import tasks_page  # noqa: F401
