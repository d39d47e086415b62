"""Error taxonomy for the listening core and its collaborators."""


class AssistantError(Exception):
    """Base class for deskwake errors."""


class DeviceUnavailable(AssistantError):
    """No matching capture device, or another holder has it open."""


class DeviceLost(AssistantError):
    """The capture device disappeared while a stream was open."""


class InvalidCredential(AssistantError):
    """The wake-word engine rejected (or was not given) its access key."""


class ModelLoadError(AssistantError):
    """A wake-word model could not be loaded."""


class RemoteError(AssistantError):
    """The remote language model call failed."""


class ContractViolation(AssistantError):
    """A caller broke the detector's usage contract. Always a bug."""


class InvalidFrameLength(ContractViolation, ValueError):
    """A frame did not have exactly the detector's frame length."""


class UseAfterRelease(ContractViolation, RuntimeError):
    """A detector was used (or released again) after release()."""
