"""
Partially homomorphic public-key encryption: Goldwasser-Micali and Paillier.
"""

from homocrypt.config import Settings as Settings
from homocrypt.encryption.gm_encryption import GMPrivateKey as GMPrivateKey
from homocrypt.encryption.gm_encryption import GMPublicKey as GMPublicKey
from homocrypt.encryption.gm_encryption import GoldwasserMicali as GoldwasserMicali
from homocrypt.encryption.paillier_encryption import Paillier as Paillier
from homocrypt.encryption.paillier_encryption import (
    PaillierPrivateKey as PaillierPrivateKey,
)
from homocrypt.encryption.paillier_encryption import (
    PaillierPublicKey as PaillierPublicKey,
)
from homocrypt.errors import ConfigurationError as ConfigurationError
from homocrypt.errors import GenerationCancelled as GenerationCancelled
from homocrypt.errors import GenerationError as GenerationError
from homocrypt.errors import GenerationTimeout as GenerationTimeout
from homocrypt.errors import HomocryptError as HomocryptError
from homocrypt.errors import InvariantError as InvariantError
from homocrypt.primes import PrimeGenerator as PrimeGenerator
from homocrypt.random_state import RandomState as RandomState

__version__ = "0.1.0"
