from pycouch.integrations.fastapi import init_app

__all__ = ["init_app"]
