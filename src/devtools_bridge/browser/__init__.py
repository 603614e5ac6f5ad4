"""browser: Chrome launch, debug-port probing and tab discovery over CDP HTTP."""
from .chrome import (  # noqa: F401
    TabInfo,
    LaunchSpec,
    LaunchOutcome,
    resolve_chrome_path,
    build_launch_spec,
    is_cdp_available,
    list_tabs,
    activate_tab,
    launch_chrome,
)
