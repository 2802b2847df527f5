"""Errors raised while deploying and initializing the proxied contracts."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when the deployment configuration or plan is malformed."""


class ConstructorArgumentsInvalid(DeploymentError, ValueError):
    """Raised when constructor arguments do not match the constructor ABI."""


class LedgerError(DeploymentError):
    """Raised when the deployment ledger cannot be read."""


class DeploymentAborted(DeploymentError):
    """Raised when the operator declines a confirmation prompt."""


class DeploymentCancelled(DeploymentError):
    """Raised when a run is cancelled before a submission or while awaiting its receipt."""

    def __init__(self, txn_hash=None):
        self.txn_hash = txn_hash
        if txn_hash:
            message = f"cancelled while awaiting confirmation of {txn_hash}"
        else:
            message = "cancelled before submission"
        super().__init__(message)


class FeeQueryError(DeploymentError):
    """Raised when the network priority fee cannot be obtained or is invalid."""

    def __init__(self, network: str, cause):
        self.network = network
        self.cause = cause
        super().__init__(f"fee query for {network} failed: {cause}")


class DeploymentFailedError(DeploymentError):
    """Raised when a contract deployment could not be submitted or confirmed."""

    def __init__(self, contract_name: str, cause):
        self.contract_name = contract_name
        self.cause = cause
        super().__init__(f"deployment of {contract_name} failed: {cause}")


class InitializationFailedError(DeploymentError):
    """Raised when the initialize call reverted or failed to confirm."""

    def __init__(self, address: str, cause):
        self.address = address
        self.cause = cause
        super().__init__(f"initialization of {address} failed: {cause}")


class DeploymentHalted(DeploymentError):
    """Raised by the orchestrator when a run stops at a failing state."""

    def __init__(self, state, cause):
        self.state = state
        self.cause = cause
        super().__init__(f"Deployment failed at {state.value}: {cause}")
