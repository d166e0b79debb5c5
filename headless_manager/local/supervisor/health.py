import logging
import warnings
from typing import Optional

import requests
from urllib3.exceptions import InsecureRequestWarning

import headless_manager.settings as settings

log = logging.getLogger(__name__)


def is_server_accessible(
    backend_url: Optional[str],
    api_endpoint: str = settings.HEALTH_CHECK_ENDPOINT,
    timeout: float = settings.HEALTH_CHECK_TIMEOUT,
) -> bool:
    """
    Checks once whether the SPT server with the Fika mod answers on the backend URL.

    Certificate validation is disabled since the server normally runs with a
    self-signed certificate. Errors are logged and reported as False; nothing
    is raised and nothing is retried.

    :param backend_url: The base URL of the backend, including a trailing slash.
    :param api_endpoint: The relative API path appended to the backend URL.
    :param timeout: Request timeout in seconds.
    :return: True if the endpoint returned a 2xx status, False otherwise.
    """
    if not backend_url:
        log.error("No backend URL is configured. Cannot check if SPT.Server is running.")
        return False

    url = f"{backend_url}{api_endpoint}"
    log.debug(f"Checking backend availability at {url}")
    try:
        with requests.Session() as session:
            session.headers["responsecompressed"] = "0"
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", InsecureRequestWarning)
                response = session.get(url, verify=False, timeout=timeout)
    except requests.RequestException as e:
        log.debug(f"Health check request to {url} failed: {e}")
        log.error(f"Could not reach SPT.Server at {backend_url}\nPlease ensure SPT.Server is running and accessible.")
        return False

    if 200 <= response.status_code < 300:
        log.debug(f"Backend answered with status {response.status_code}.")
        return True

    log.error(
        f"Could not access {url} (status {response.status_code})\n"
        "Ensure Fika Server mod is installed. Please review the installation process in the documentation."
    )
    return False
