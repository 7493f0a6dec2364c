# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field

from octopod_lib.credentials import Credential
from octopod_lib.properties import Properties


@dataclass(frozen=True, eq=False)
class Scheduler:
    """
    Handle identifying one configured connection to a batch-job backend.

    The handle is immutable; the connection it refers to is kept by the adaptor
    and looked up by `unique_id`. Two handles are equal if they were issued by
    the same adaptor under the same id.

    Attributes:
        adaptor_name (str): Name of the adaptor that created the scheduler.
        unique_id (str): Identifier of the scheduler, unique within the adaptor.
        location (str): The location the scheduler was created for.
        queue_names (tuple[str, ...]): Names of the queues, as reported at creation time.
        credential (Credential | None): Credential used to connect.
        properties (Properties): Scheduler-level configuration.
        local_standard_streams (bool): Whether the standard streams of jobs are handled locally.
        detached_jobs (bool): Whether jobs survive the closing of the scheduler.
    """

    adaptor_name: str
    unique_id: str
    location: str
    queue_names: tuple[str, ...] = ()
    credential: Credential | None = None
    properties: Properties = field(default_factory=Properties)
    local_standard_streams: bool = False
    detached_jobs: bool = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Scheduler):
            return NotImplemented
        return (self.adaptor_name, self.unique_id) == (
            other.adaptor_name,
            other.unique_id,
        )

    def __hash__(self) -> int:
        return hash((self.adaptor_name, self.unique_id))
