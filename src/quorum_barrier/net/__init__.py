from .address import DEFAULT_LOOKUP_URL, lookup_public_address

__all__ = ['DEFAULT_LOOKUP_URL', 'lookup_public_address']
