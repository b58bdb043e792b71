import logging

from core.config import BASE_URL, LOG_DIR, LOG_LEVEL, REQUEST_TIMEOUT
from core.logging_setup import setup_logging
from storage.api_client import TaskApiClient
from controller.app_controller import AppController

logger = logging.getLogger(__name__)


def main():
    setup_logging(log_dir=LOG_DIR, console_level=LOG_LEVEL)
    logger.info("Task board starting against %s", BASE_URL)

    client = TaskApiClient(BASE_URL, timeout=REQUEST_TIMEOUT)
    controller = AppController(client)

    # Tk is imported late so the headless parts never need a display
    from gui.main_window import MainWindow
    ui = MainWindow(controller)
    ui.mainloop()


if __name__ == "__main__":
    main()
