from streamchaos_core.storage.paths import join_uri, parent_path

__all__ = ["join_uri", "parent_path"]
