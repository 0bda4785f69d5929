from httpsbydefault import optmanager

CONF_DIR = "~/.httpsbydefault"
CONF_BASENAME = "config.yaml"


class Options(optmanager.OptManager):
    def __init__(self, **kwargs) -> None:
        super().__init__()
        self.add_option(
            "confdir",
            str,
            CONF_DIR,
            "Location of the default httpsbydefault configuration files.",
        )
        # Addon options are declared later, in their load() hooks.
        self.update_defer(**kwargs)
