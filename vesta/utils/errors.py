"""Error handling utilities."""


class VestaError(Exception):
    """Base exception for the Vesta operations backend."""
    pass


class SupabaseError(VestaError):
    """Supabase operation error."""
    pass


class TenantResolutionError(VestaError):
    """No account could be resolved for the current request."""
    pass


class InvalidOperationError(VestaError):
    """Unknown operation type, listing-type filter or status."""
    pass


class ListingValidationError(VestaError):
    """Listing record could not be coerced into a typed listing view."""
    pass
