from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class RegistryCredentials:
    server_address: str
    username: str
    password: str = ""

    def to_auth_config(self) -> Dict[str, str]:
        """Shape the docker SDK expects for ``auth_config``."""
        return {
            "username": self.username,
            "password": self.password,
            "serveraddress": self.server_address,
        }

    def __repr__(self) -> str:
        return f"RegistryCredentials(server_address={self.server_address!r}, username={self.username!r})"
