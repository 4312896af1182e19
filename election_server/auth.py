import hashlib
import logging
import re

from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

logger = logging.getLogger("server.auth")

PUBLIC_EXPONENT = 65537
ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def strip0x(s):
    return s[2:] if isinstance(s, str) and s.lower().startswith("0x") else s


def public_key_from_hex(pubkey_hex):
    modulus = int(strip0x(pubkey_hex), 16)
    return RSA.construct((modulus, PUBLIC_EXPONENT))


def address_from_public_key(pubkey_hex):
    """Account address of an RSA public key given as its hex modulus.

    The last 20 bytes of SHA-256 over the big-endian modulus, ``0x``-prefixed.
    """
    modulus = int(strip0x(pubkey_hex), 16)
    pubkey_bytes = modulus.to_bytes((modulus.bit_length() + 7) // 8, 'big')
    return "0x" + hashlib.sha256(pubkey_bytes).digest()[-20:].hex()


def normalize_address(address):
    normalized = address.strip().lower()
    if not normalized.startswith("0x"):
        normalized = "0x" + normalized
    if not ADDRESS_RE.match(normalized):
        raise ValueError(f"Not an account address: {address!r}")
    return normalized


def sign_message(message, private_key):
    digest = SHA256.new(message.encode("utf-8"))
    return pkcs1_15.new(private_key).sign(digest).hex()


def verify_signature(message, pubkey_hex, signature_hex):
    try:
        public_key = public_key_from_hex(pubkey_hex)
        digest = SHA256.new(message.encode("utf-8"))
        pkcs1_15.new(public_key).verify(digest, bytes.fromhex(strip0x(signature_hex)))
        return True
    except (ValueError, TypeError) as e:
        logger.debug(f"Signature verification failed: {e}")
        return False
