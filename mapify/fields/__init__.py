from mapify.fields.base import PyObjectId

__all__ = ["PyObjectId"]
