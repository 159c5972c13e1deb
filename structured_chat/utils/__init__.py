from .json_decode import decode_as

__all__ = ["decode_as"]
