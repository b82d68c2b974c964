import logging
import sys

from core.config import AppConfig
from core.exceptions import ConfigError
from core.logging_setup import setup_logging
from controller.app_controller import AppController
from gui.main_window import MainWindow

log = logging.getLogger(__name__)


def main() -> int:
    config = AppConfig.from_env()
    setup_logging(log_dir=config.log_dir)
    try:
        config.validate()
    except ConfigError as e:
        # sin config no tiene sentido abrir la ventana
        log.error("%s", e)
        return 1

    controller = AppController(config)
    controller.start()

    ui = MainWindow(controller)
    ui.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
