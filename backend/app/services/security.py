"""Password hashing"""
import hashlib
import hmac
import secrets

SALT_BYTES = 16
KEY_LENGTH = 64


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=16384,
        r=8,
        p=1,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Return "<hex hash>.<hex salt>" """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    try:
        hashed, salt = stored.split(".", 1)
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(expected, _scrypt(supplied, salt))


def mock_wallet_address() -> str:
    """Placeholder wallet address until the registry provisions a real one"""
    return f"0x{secrets.token_hex(20)}"
