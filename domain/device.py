import re


MOBILE_REGEX = re.compile(
    r"Mobile|Android|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE
)


def is_touch_device(user_agent: str = "", max_touch_points: int = 0) -> bool:
    """Touch capable if the host reports touch points or looks like a phone."""
    return max_touch_points > 0 or bool(MOBILE_REGEX.search(user_agent))
