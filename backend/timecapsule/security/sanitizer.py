"""
Input sanitization for capsule text fields and uploaded file names.

Rejects:
- Null bytes
- Control characters (newlines/tabs only where the field allows them)
- Path components in uploaded file names
"""
import re
from typing import Optional


class InputSanitizer:
    """Validates and sanitizes user input."""

    NULL_BYTE_PATTERN = re.compile(r'\x00')
    CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f]')  # Except \t=0x09, \n=0x0a, \r=0x0d
    LINE_BREAK_PATTERN = re.compile(r'[\r\n]')
    WHITESPACE_RUN_PATTERN = re.compile(r'\s+')
    MEDIA_TYPE_PATTERN = re.compile(r'^(image|audio|video)/', re.IGNORECASE)

    @staticmethod
    def sanitize_string(value: str, max_length: Optional[int] = None, allow_newlines: bool = False) -> str:
        """
        Sanitize string input.

        Args:
            value: Input string
            max_length: Optional max length
            allow_newlines: Allow \n and \r characters (for message bodies)

        Returns:
            The input, unchanged

        Raises:
            ValueError: If input contains forbidden characters or is too long
        """
        if not isinstance(value, str):
            raise ValueError("Input must be string")

        if InputSanitizer.NULL_BYTE_PATTERN.search(value):
            raise ValueError("Null bytes not allowed")

        if InputSanitizer.CONTROL_CHAR_PATTERN.search(value):
            raise ValueError("Control characters not allowed")

        if not allow_newlines and InputSanitizer.LINE_BREAK_PATTERN.search(value):
            raise ValueError("Line breaks not allowed")

        if max_length and len(value) > max_length:
            raise ValueError(f"Input exceeds max length of {max_length}")

        return value

    @staticmethod
    def sanitize_title(value: str) -> str:
        sanitized = InputSanitizer.sanitize_string(value.strip(), max_length=255)
        if not sanitized:
            raise ValueError("title is required")
        return sanitized

    @staticmethod
    def sanitize_message(value: str) -> str:
        """Sanitize capsule message (newlines allowed, trailing spaces trimmed per line)."""
        if not value.strip():
            raise ValueError("message is required")
        sanitized = InputSanitizer.sanitize_string(value, max_length=100000, allow_newlines=True)
        return '\n'.join(line.rstrip() for line in sanitized.strip().split('\n'))

    @staticmethod
    def sanitize_filename(filename: Optional[str]) -> str:
        """Strip directories and collapse whitespace runs to a single dash."""
        filename = (filename or '').replace('\\', '/').split('/')[-1]
        filename = InputSanitizer.WHITESPACE_RUN_PATTERN.sub('-', filename.strip())
        filename = InputSanitizer.CONTROL_CHAR_PATTERN.sub('', filename)
        filename = filename.lstrip('.')

        if not filename:
            return 'upload'
        return filename[-200:]

    @staticmethod
    def is_allowed_media_type(mime_type: Optional[str]) -> bool:
        """Only image/*, audio/* and video/* uploads are accepted."""
        return bool(mime_type) and bool(InputSanitizer.MEDIA_TYPE_PATTERN.match(mime_type.strip()))
