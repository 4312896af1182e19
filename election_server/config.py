import json
import os
import time
from dataclasses import dataclass

from dotenv import load_dotenv

from .auth import address_from_public_key, normalize_address

# Loads a .env file from the working directory if present
load_dotenv()

# Defaults mirror the deployment script: start in one day, run for three days
DEFAULT_START_DELAY = 24 * 60 * 60
DEFAULT_DURATION = 3 * 24 * 60 * 60


def authority_from_wallet(path):
    with open(path, "r") as f:
        data = json.load(f)
    return address_from_public_key(data["public_key"])


@dataclass(frozen=True)
class Config:
    host: str = "127.0.0.1"
    port: int = 8443
    cert: str = "election_server/cert.pem"
    key: str = "election_server/key.pem"
    bulletin_host: str = "0.0.0.0"
    bulletin_port: int = 5000
    bulletin_async_mode: str = "eventlet"
    authority: str = None
    start_time: int = None
    end_time: int = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None, now=None):
        env = os.environ if environ is None else environ
        now = int(time.time()) if now is None else now

        if env.get("ELECTION_AUTHORITY"):
            authority = normalize_address(env["ELECTION_AUTHORITY"])
        elif env.get("ELECTION_AUTHORITY_WALLET"):
            authority = authority_from_wallet(env["ELECTION_AUTHORITY_WALLET"])
        else:
            raise ValueError("Set ELECTION_AUTHORITY or ELECTION_AUTHORITY_WALLET")

        start_time = int(env.get("ELECTION_START", now + DEFAULT_START_DELAY))
        end_time = int(env.get("ELECTION_END", start_time + DEFAULT_DURATION))

        return cls(
            host=env.get("ELECTION_HOST", cls.host),
            port=int(env.get("ELECTION_PORT", cls.port)),
            cert=env.get("ELECTION_CERT", cls.cert),
            key=env.get("ELECTION_KEY", cls.key),
            bulletin_host=env.get("BULLETIN_HOST", cls.bulletin_host),
            bulletin_port=int(env.get("BULLETIN_PORT", cls.bulletin_port)),
            bulletin_async_mode=env.get("BULLETIN_ASYNC_MODE", cls.bulletin_async_mode),
            authority=authority,
            start_time=start_time,
            end_time=end_time,
            log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
        )
