"""
Runtime settings, read from the environment (and a .env file if present).

    CHATCRYPT_AES_DEFAULT_KEY          fallback key, from-scratch AES
    CHATCRYPT_DES_DEFAULT_KEY          fallback key, from-scratch DES
    CHATCRYPT_LIBRARY_AES_DEFAULT_KEY  fallback key, library AES-CBC
    CHATCRYPT_LIBRARY_DES_DEFAULT_KEY  fallback key, library DES-CBC
    CHATCRYPT_RSA_LINE_THRESHOLD       min inbound line length for RSA attempt
    CHATCRYPT_FILLER                   pad letter for Hill / Columnar
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    aes_default_key: str = "MAES_DEFAULT_KEY"
    des_default_key: str = "MDES_KEY"
    library_aes_default_key: str = "AES_DEFAULT_KEY!"
    library_des_default_key: str = "DES_KEY!"
    # base64 of a 2048-bit RSA block is 344 chars; anything much shorter
    # cannot be RSA ciphertext
    rsa_line_threshold: int = 300
    filler: str = "X"

    def __post_init__(self):
        if len(self.filler) != 1 or not self.filler.isalpha():
            raise ValueError("filler must be a single letter.")
        if self.rsa_line_threshold < 0:
            raise ValueError("rsa_line_threshold must be non-negative.")

    @classmethod
    def from_env(cls) -> "Settings":
        """Read os.environ after loading the nearest .env above the cwd."""
        load_dotenv(find_dotenv(usecwd=True))
        defaults = cls()
        return cls(
            aes_default_key=os.getenv("CHATCRYPT_AES_DEFAULT_KEY",
                                      defaults.aes_default_key),
            des_default_key=os.getenv("CHATCRYPT_DES_DEFAULT_KEY",
                                      defaults.des_default_key),
            library_aes_default_key=os.getenv("CHATCRYPT_LIBRARY_AES_DEFAULT_KEY",
                                              defaults.library_aes_default_key),
            library_des_default_key=os.getenv("CHATCRYPT_LIBRARY_DES_DEFAULT_KEY",
                                              defaults.library_des_default_key),
            rsa_line_threshold=int(os.getenv("CHATCRYPT_RSA_LINE_THRESHOLD",
                                             defaults.rsa_line_threshold)),
            filler=os.getenv("CHATCRYPT_FILLER", defaults.filler).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
