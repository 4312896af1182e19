import argparse
import base64
import json
import logging
import os

from Crypto.PublicKey import RSA

from election_server.auth import address_from_public_key, sign_message

logger = logging.getLogger("client.wallet")

KEY_PROTECTION = "scryptAndAES128-CBC"


class Wallet:
    """JSON file holding one account key pair.

    The public key is kept as its hex modulus, the private key as a
    base64-encoded PKCS#8 export, passphrase-protected when one is given.
    """

    def __init__(self, path):
        self.path = path
        self.data = {}
        self._key = None

    def save(self):
        with open(self.path, "w") as f:
            json.dump(self.data, f, indent=2)

    def load(self):
        if os.path.exists(self.path):
            with open(self.path, "r") as f:
                self.data = json.load(f)
        self._key = None
        return self

    def set(self, key, value):
        self.data[key] = value

    def get(self, key):
        return self.data.get(key, None)

    def set_private_key(self, privkey_bytes, encrypted):
        self.set("private_key", base64.b64encode(privkey_bytes).decode())
        self.set("encrypted", encrypted)

    def get_private_key_bytes(self):
        return base64.b64decode(self.get("private_key"))

    def set_public_key(self, pubkey_hex):
        self.set("public_key", pubkey_hex)

    def get_public_key(self):
        return self.get("public_key")

    def is_initialized(self):
        return bool(self.get("private_key") and self.get("public_key"))

    @property
    def address(self):
        return address_from_public_key(self.get_public_key())

    def private_key(self, passphrase=None):
        if self._key is None:
            if self.get("encrypted") and passphrase is None:
                raise ValueError(f"Wallet {self.path} is encrypted, a passphrase is required")
            self._key = RSA.import_key(self.get_private_key_bytes(), passphrase=passphrase)
        return self._key

    def sign(self, message, passphrase=None):
        return sign_message(message, self.private_key(passphrase))


def mode_init(wallet, passphrase=None, bits=2048):
    if wallet.load().is_initialized():
        raise ValueError(f"Wallet {wallet.path} already holds a key, refusing to overwrite it")
    key = RSA.generate(bits)
    if passphrase:
        privkey_bytes = key.export_key(pkcs=8, passphrase=passphrase, protection=KEY_PROTECTION)
    else:
        privkey_bytes = key.export_key(pkcs=8)
    wallet.set_private_key(privkey_bytes, encrypted=bool(passphrase))
    wallet.set_public_key(hex(key.publickey().n))
    wallet.save()
    logger.info(f"Wallet initialized and saved to {wallet.path}")
    return wallet.address


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    parser = argparse.ArgumentParser(description="Election account wallet")
    parser.add_argument("wallet", help="Path to wallet JSON file")
    parser.add_argument("mode", choices=["init", "show"])
    parser.add_argument("--passphrase", help="Passphrase protecting the private key")
    parser.add_argument("--bits", type=int, default=2048, help="RSA key size for init")
    args = parser.parse_args()

    wallet = Wallet(args.wallet)
    if args.mode == "init":
        address = mode_init(wallet, passphrase=args.passphrase, bits=args.bits)
    else:
        if not wallet.load().is_initialized():
            logger.error(f"No key in {args.wallet}. Run 'init' first.")
            return
        address = wallet.address
    print(f"Address: {address}")


if __name__ == "__main__":
    main()
