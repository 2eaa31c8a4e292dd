"""
The `crypt` package provides the cryptographic utilities of the
authentication workflows.

Contents
--------
- encrypt_decrypt
    Utility module exposing the `EncryptionDec` class:
        * `hash_password` - securely hashes plaintext passwords using bcrypt
        * `check_passwords` - verifies a plaintext password against a hashed one
        * `generate_verification_code` - uniform 6-digit codes (100000-999999) from `secrets`
        * `codes_match` - constant-time code comparison
"""
