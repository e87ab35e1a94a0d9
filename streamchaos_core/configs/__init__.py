from streamchaos_core.configs.redirect import (
    RedirectResolver,
    RedirectTarget,
    parse_redirect_filename,
)
from streamchaos_core.configs.store import ConfigurationStore

__all__ = [
    "ConfigurationStore",
    "RedirectResolver",
    "RedirectTarget",
    "parse_redirect_filename",
]
