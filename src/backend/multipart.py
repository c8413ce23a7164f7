"""
multipart/form-data encoding for backend requests.
"""

import uuid
from typing import Dict, Optional, Tuple

# field name -> (filename, content, content type)
FileField = Tuple[str, bytes, str]


def encode_multipart(fields: Dict[str, str],
                     files: Optional[Dict[str, FileField]] = None) -> Tuple[bytes, str]:
    """Encode form fields and files.

    Returns:
        (body, content_type) where content_type carries the boundary
    """
    boundary = uuid.uuid4().hex
    lines = []

    for name, value in fields.items():
        lines.append(f"--{boundary}".encode())
        lines.append(f'Content-Disposition: form-data; name="{name}"'.encode())
        lines.append(b"")
        lines.append(str(value).encode("utf-8"))

    for name, (filename, content, content_type) in (files or {}).items():
        lines.append(f"--{boundary}".encode())
        lines.append(f'Content-Disposition: form-data; name="{name}"; filename="{filename}"'.encode())
        lines.append(f"Content-Type: {content_type}".encode())
        lines.append(b"")
        lines.append(content)

    lines.append(f"--{boundary}--".encode())
    lines.append(b"")
    return b"\r\n".join(lines), f"multipart/form-data; boundary={boundary}"
