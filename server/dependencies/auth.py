import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str = Header(...)) -> None:
    """Compare the X-Api-Key header with API_SERVER_API_KEY.

    A request without the header fails FastAPI validation (422) before this runs.

    Raises:
        HTTPException: 500 if the server has no key configured, 401 on a mismatch.
    """
    try:
        expected_key = request.app.state.helper_config.get_string_val("API_SERVER_API_KEY")
    except ValueError:
        request.app.state.helper_config.get_logger().error("API_SERVER_API_KEY is not set; rejecting query requests")
        raise HTTPException(status_code=500, detail="API key is not configured on the server")
    if not secrets.compare_digest(x_api_key.encode("utf-8"), expected_key.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
