class AppStatusCode:
    OPERATION_FAILED = "200"
    INVALID_INPUT = "201"
    DUPLICATE_ADD_ERROR = "203"

    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_UNAUTHORIZED_ACCESS = "303"
    UNAUTHORIZED_ACTION = "304"

    ENTITY_NOT_FOUND = "400"
    CONCURRENT_MODIFICATION = "401"
    STORAGE_UNAVAILABLE = "402"
    OPERATION_CANCELLED = "403"
