class BrokerException(Exception):
    pass


class NoSuchInstanceException(BrokerException):
    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"no such instance with ID {instance_id}")


class NoMatchingDeployerException(BrokerException):
    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        super().__init__(f"no deployer found for service {service_id}")


class DuplicateDeployerException(BrokerException):
    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"a deployer with identity {identity} is already registered")


class UnimplementedException(BrokerException):
    pass


class InvalidParametersException(BrokerException):
    pass


class DeployerException(BrokerException):
    """Failure reported by a deployer, tagged with the step that failed."""

    def __init__(self, message: str, *, step: str | None = None) -> None:
        self.step = step
        super().__init__(message)
