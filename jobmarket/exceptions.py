"""Custom exceptions for the job market application."""


class JobMarketError(Exception):
    """Base exception for the job market application."""

    status_code = 500
    code = "internal_error"


class NotFoundError(JobMarketError):
    """Raised when a requested resource is not found."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource_type: str, resource_id: int | str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found")


class ValidationError(JobMarketError):
    """Raised when a filter condition or request payload is malformed."""

    status_code = 422
    code = "invalid_filter"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class UnauthorizedError(JobMarketError):
    """Raised when no user identity accompanies a user-scoped request."""

    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class QuotaError(JobMarketError):
    """Base for user-actionable saved-filter limits."""

    status_code = 409
    code = "quota"


class SavedFilterLimitError(QuotaError):
    """Raised when a user already owns the maximum number of saved filters."""

    code = "saved_filter_limit"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum of {limit} saved filters reached")


class DuplicateFilterNameError(QuotaError):
    """Raised when a user already has a saved filter with the same name."""

    code = "duplicate_name"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A filter named '{name}' already exists")


class DuplicateFavoriteError(JobMarketError):
    """Raised when a job is already in the user's favorites."""

    status_code = 409
    code = "duplicate_favorite"

    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"Job {job_id} already favorited")


class ConcurrentApplyError(JobMarketError):
    """Raised when another apply advanced the checkpoint first."""

    status_code = 409
    code = "concurrent_apply"

    def __init__(self, filter_id: int):
        self.filter_id = filter_id
        super().__init__(f"Saved filter {filter_id} was applied concurrently, retry")


class QueryExecutionError(JobMarketError):
    """Raised when the data store fails to execute a filter query."""

    status_code = 503
    code = "query_failed"

    def __init__(self, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(message)


class ExternalAPIError(JobMarketError):
    """Raised when an external API call fails."""

    status_code = 502
    code = "external_api"

    def __init__(
        self,
        message: str,
        api_name: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        self.api_name = api_name
        self.response_status = status_code
        self.response_body = response_body
        super().__init__(f"{api_name}: {message}")
