"""
Constants shared across the launch components.

Container paths, the in-image entry contract and service API versions are
fixed by the launcher image and are not configurable.
"""


class ContainerPaths:
    """
    Fixed locations inside the build container.
    """
    # Build log written into the artifacts directory
    LOG_FILE = "builds.log"
    # Artifacts directory inside the container
    DEFAULT_ARTIFACTS_DIR = "/sd/workspace/artifacts"

    # The source tree is mounted where a checkout of this repository would live
    SCM_HOST = "screwdriver.cd"
    ORG_REPO = "sd-local/local-build"
    SOURCE_DIR = f"/sd/workspace/src/{SCM_HOST}/{ORG_REPO}"

    # Shared volume mount points in the build container
    BIN_MOUNT = "/opt/sd"
    HAB_MOUNT = "/opt/sd/hab"
    # Shared volume mount points in the setup container
    SETUP_BIN_MOUNT = "/opt/sd/"
    SETUP_HAB_MOUNT = "/hab"

    ENTRY_SCRIPT = "/opt/sd/local_run.sh"
    SETUP_ENTRYPOINT = "/bin/echo set up bin"


class ApiVersions:
    """Version path segments appended to the service base URLs."""
    API = "v4"
    STORE = "v1"


class TimeoutConstants:
    """
    Timeouts used around external processes.

    Termination confirmation defaults live in LauncherSettings.
    """
    # Waiting for the stdout forwarding thread after the process exited
    STREAM_JOIN_TIMEOUT = 5.0
