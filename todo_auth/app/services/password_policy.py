from typing import List

# bcrypt only accepts this many bytes of input
BCRYPT_MAX_BYTES = 72


class PasswordPolicy:
    """Password strength rules applied on registration"""

    def __init__(self, min_length: int = 12, max_bytes: int = BCRYPT_MAX_BYTES):
        self.min_length = min_length
        self.max_bytes = min(max_bytes, BCRYPT_MAX_BYTES)

    def validate(self, password: str) -> List[str]:
        """Return every rule the password breaks, empty if it is acceptable"""
        problems = []
        if len(password) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters")
        if len(password.encode("utf-8")) > self.max_bytes:
            problems.append(f"Password must be at most {self.max_bytes} bytes")
        if not any(c.isupper() for c in password):
            problems.append("Password must contain an uppercase letter")
        if not any(c.islower() for c in password):
            problems.append("Password must contain a lowercase letter")
        if not any(c.isdigit() for c in password):
            problems.append("Password must contain a digit")
        if all(c.isalnum() for c in password):
            problems.append("Password must contain a special character")
        return problems
