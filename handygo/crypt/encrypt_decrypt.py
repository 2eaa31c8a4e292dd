import hmac
import secrets

import bcrypt


class EncryptionDec:
    """
    Utility class for password hashing and verification code generation.

    Methods
    -------
    hash_password(text: str) -> str
        Hashes a plaintext password using bcrypt with a generated salt.
    check_passwords(plain_text: str, passwd: str) -> bool
        Verifies a plaintext password against a hashed password.
    generate_verification_code() -> str
        Generates a uniformly random 6-digit code in 100000-999999.
    codes_match(expected: str, provided: str) -> bool
        Constant-time comparison of two codes.
    """

    CODE_MIN = 100000
    CODE_MAX = 999999

    def hash_password(self, text: str) -> str:
        """
        Hash a plaintext password using bcrypt.

        Parameters
        ----------
        text : str
            The plaintext password.

        Returns
        -------
        str
            The bcrypt-hashed password (UTF-8 decoded).
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(text.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """
        Verify if a plaintext password matches a hashed password.

        Returns
        -------
        bool
            True if the password matches, False otherwise (including a
            malformed stored hash).
        """
        try:
            return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))
        except ValueError:
            return False

    def generate_verification_code(self) -> str:
        """
        Generate a 6-digit numeric verification code.

        Example
        -------
        >>> enc = EncryptionDec()
        >>> enc.generate_verification_code()
        '493027'
        """
        return str(self.CODE_MIN + secrets.randbelow(self.CODE_MAX - self.CODE_MIN + 1))

    def codes_match(self, expected: str, provided: str) -> bool:
        return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
