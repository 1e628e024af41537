"""Shared utility helpers."""

from class_enhance.utils.atomic import atomic_temp_path, write_bytes_atomically, write_json_atomically

__all__ = [
    "atomic_temp_path",
    "write_bytes_atomically",
    "write_json_atomically",
]
