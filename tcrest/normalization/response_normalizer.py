"""
Response Normalizer

Flattens the {status, data} envelope into one ordered sequence of entity
records, or a Failure carrying the platform status.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError

from tcrest.errors import APIFailure, TransportError
from tcrest.models.envelope import APIEnvelope


RESULT_COUNT_KEY = "resultCount"


@dataclass
class Failure:
    """
    Typed failure result

    Attributes:
        error: APIFailure when the platform answered with a non-success
            status, TransportError when it could not be reached
    """
    error: Union[APIFailure, TransportError]

    @property
    def status(self) -> str:
        """Platform status string, or the transport error text"""
        if isinstance(self.error, APIFailure):
            return self.error.status
        return str(self.error)

    @property
    def is_transport_error(self) -> bool:
        return isinstance(self.error, TransportError)

    def __bool__(self) -> bool:
        return False

    def unwrap(self):
        """Raise the carried error"""
        raise self.error


class ResultSet:
    """
    Lazy, restartable sequence of records from a Success envelope

    Each iteration walks the stored data again, in key order, skipping
    the resultCount metadata key. List values yield each element; any
    other value is yielded as a single record.

    A ResultSet is truthy even when empty; only Failure is falsy.
    """

    def __init__(self, envelope: APIEnvelope):
        self.envelope = envelope

    @property
    def status(self) -> str:
        return self.envelope.status

    @property
    def result_count(self) -> Optional[int]:
        """Total count reported by the platform, if present"""
        return self.envelope.data.get(RESULT_COUNT_KEY)

    def __iter__(self) -> Iterator[Any]:
        for key, value in self.envelope.data.items():
            if key == RESULT_COUNT_KEY:
                continue
            if isinstance(value, list):
                yield from value
            else:
                yield value

    def __bool__(self) -> bool:
        return True

    def first(self) -> Optional[Any]:
        """First record, or None when the result is empty"""
        return next(iter(self), None)

    def to_list(self) -> List[Any]:
        return list(self)

    def unwrap(self) -> List[Any]:
        """Records as a list; mirrors Failure.unwrap()"""
        return self.to_list()

    def __repr__(self) -> str:
        return f"ResultSet(status={self.status!r}, result_count={self.result_count!r})"


class ResponseNormalizer:
    """Turns parsed JSON responses into ResultSet or Failure"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def normalize(self, envelope: Union[APIEnvelope, Dict[str, Any], None]) -> Union[ResultSet, Failure]:
        """
        Normalize a response envelope

        Args:
            envelope: APIEnvelope or the raw parsed JSON mapping

        Returns:
            ResultSet on "Success", otherwise Failure carrying the status
        """
        if envelope is None:
            self.logger.warning("Empty response from API")
            return Failure(APIFailure("No response"))

        if not isinstance(envelope, APIEnvelope):
            if not isinstance(envelope, dict):
                self.logger.warning(f"Unexpected response type: {type(envelope).__name__}")
                return Failure(APIFailure("Malformed response"))
            try:
                envelope = APIEnvelope(**envelope)
            except ValidationError as e:
                self.logger.warning(f"Malformed response envelope: {e.error_count()} error(s)")
                return Failure(APIFailure("Malformed response", str(e)))

        if not envelope.is_success:
            self.logger.warning(f"API request failed: {envelope.status}")
            return Failure(APIFailure(envelope.status, envelope.message))

        results = ResultSet(envelope)
        self.logger.debug(f"Normalized response with resultCount={results.result_count}")
        return results


def normalize(envelope: Union[APIEnvelope, Dict[str, Any], None]) -> Union[ResultSet, Failure]:
    """Module-level shortcut for ResponseNormalizer().normalize()"""
    return ResponseNormalizer().normalize(envelope)
