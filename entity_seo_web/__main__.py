import logging

from entity_seo_web.app_factory import create_app
from entity_seo_web.config import IniConfig
from entity_seo_web.logging_setup import setup_logging


def main() -> None:
    config = IniConfig.from_env_or_default()
    settings = config.load_settings()
    setup_logging(settings.log_level)
    logging.getLogger(__name__).info("Settings loaded from %s", config.ini_path)

    app = create_app(settings)
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=app.config["DEBUG"])


if __name__ == "__main__":
    main()
