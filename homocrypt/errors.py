"""Exceptions raised by the homocrypt schemes and key generation."""


class HomocryptError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(HomocryptError, ValueError):
    """Invalid key size, bit length or settings value."""


class InvariantError(HomocryptError, ArithmeticError):
    """An arithmetic-domain violation that correct key generation rules out.

    Seeing one of these means the key material or a ciphertext is corrupt;
    it is not meant to be caught and retried.
    """


class GenerationError(HomocryptError, RuntimeError):
    """A bounded resampling loop ran out of attempts."""


class GenerationTimeout(GenerationError):
    """Key generation exceeded its deadline."""


class GenerationCancelled(GenerationError):
    """Key generation was stopped by its cancellation hook."""
