import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..errors import TransformError
from ..models import SourceService, TargetDefinition


@dataclass
class TransformResult:
    definitions: List[TargetDefinition] = field(default_factory=list)
    errors: List[TransformError] = field(default_factory=list)


class Transformer:
    """
    Maps Kong services onto Tyk OAS API definitions, one per service.

    Only ``routes[0].paths[0]`` becomes the listen path and the upstream URL
    is ``protocol + "://" + host + path`` taken verbatim from the dump.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    # ---------- field mapping ----------
    @staticmethod
    def listen_path(service: SourceService) -> Optional[str]:
        if not service.routes or not service.routes[0].paths:
            return None
        return service.routes[0].paths[0]

    @staticmethod
    def upstream_url(service: SourceService) -> str:
        return service.protocol + "://" + service.host + service.path

    # ---------- transform ----------
    def transform_service(self, service: SourceService) -> TargetDefinition:
        if not service.name:
            raise TransformError(service.identifier, "service has no name")

        listen = self.listen_path(service)
        if listen is None:
            self.logger.warning(
                "Service %r has no route path; its definition will have no listen path",
                service.name,
            )
        if len(service.routes) > 1 or (service.routes and len(service.routes[0].paths) > 1):
            self.logger.debug("Service %r: only the first route path is migrated", service.name)

        return TargetDefinition(
            title=service.name,
            listen_path=listen,
            upstream_url=self.upstream_url(service),
        )

    def transform(self, services: Iterable[SourceService]) -> TransformResult:
        result = TransformResult()
        for service in services:
            try:
                result.definitions.append(self.transform_service(service))
            except TransformError as e:
                self.logger.error("Skipping record: %s", e)
                result.errors.append(e)
        self.logger.info(
            "Transformed %d service(s) into API definitions (%d skipped)",
            len(result.definitions), len(result.errors),
        )
        return result
