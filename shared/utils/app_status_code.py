class AppStatusCode:
    # success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"
    CREATED_SUCCESSFULLY = "102"

    # request / business rule failures
    OPERATION_FAILED = "200"
    OPERATION_ERROR = "201"
    INVALID_INPUT = "202"
    REQUIRED_VALIDATION_ERROR = "203"
    DUPLICATE_ADD_ERROR = "204"
    RESOURCE_NOT_FOUND = "205"
    INVALID_STATE_TRANSITION = "206"
    LIMIT_EXCEEDED = "207"
    UNAUTHORIZED_ACTION = "208"

    # authentication
    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_UNAUTHORIZED_ACCESS = "302"

    # payment provider
    WEBHOOK_SIGNATURE_INVALID = "400"
