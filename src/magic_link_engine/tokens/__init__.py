from .codec import WIRE_FIELDS, CredentialCodec, system_clock

__all__ = ["WIRE_FIELDS", "CredentialCodec", "system_clock"]
