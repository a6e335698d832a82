"""Pre-flight subscription check run before any sync work."""

from typing import Optional

import requests

from .actions import ActionsOutput
from .config import Config
from .errors import SubscriptionError


def validate_subscription(
    config: Config,
    output: ActionsOutput,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Check the repository subscription with the validation endpoint.

    Fails closed only on an explicit error response. Timeouts and an
    unreachable endpoint let the run continue.

    Returns:
        True if the endpoint accepted the repository, False if the check
        was skipped or could not be completed.

    Raises:
        SubscriptionError: If the endpoint answered with an error status.
    """
    url = config.subscription_endpoint
    if not config.subscription_check or not url:
        output.debug("Subscription check skipped")
        return False

    http = session or requests

    try:
        response = http.get(url, timeout=config.subscription_timeout)
        response.raise_for_status()
    except requests.HTTPError as e:
        output.error("Subscription is not valid. Reach out to support@stepsecurity.io")
        raise SubscriptionError(config.github_repository, e.response.status_code) from e
    except requests.RequestException:
        output.info("Timeout or API not reachable. Continuing to next step.")
        return False

    return True
