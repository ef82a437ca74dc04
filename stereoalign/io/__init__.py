from .images import DEFAULT_QUALITY, decode_image, encode_jpeg, load_image, save_image

__all__ = ["DEFAULT_QUALITY", "decode_image", "encode_jpeg", "load_image", "save_image"]
