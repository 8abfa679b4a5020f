"""
Life Script Source

Turns a user profile into the ordered list of life events the simulator
consumes. The events normally come from a generative call; whenever that
is unavailable or returns garbage, a fixed fallback script is used so a
life can always be simulated.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from loguru import logger

from config import EVENT_CATEGORIES, FALLBACK_EVENTS
from kline_simulator import LifeEvent


GENDERS = ('MALE', 'FEMALE', 'OTHER')

# A generator takes a profile and returns either raw JSON text or records
ScriptGenerator = Callable[['UserProfile'], Union[str, List[Mapping[str, Any]]]]


class InvalidEventError(ValueError):
    """Raised when a generated record cannot be turned into a LifeEvent."""


# =============================================================================
# PROFILE
# =============================================================================

@dataclass(frozen=True)
class UserProfile:
    name: str
    birth_date: str
    gender: str = 'MALE'

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'UserProfile':
        """
        Build a profile from form/JSON input.

        Name and birth date are required, gender defaults to MALE.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Profile must be an object, got {type(data).__name__}")
        name = str(data.get('name') or '').strip()
        birth_date = str(data.get('birth_date') or data.get('birthDate') or '').strip()
        gender = str(data.get('gender') or 'MALE').upper()

        if not name:
            raise ValueError("Profile needs a name")
        if not birth_date:
            raise ValueError("Profile needs a birth date")
        if gender not in GENDERS:
            raise ValueError(f"Unknown gender '{gender}', expected one of {', '.join(GENDERS)}")
        return cls(name=name, birth_date=birth_date, gender=gender)

    def to_dict(self) -> dict:
        return {'name': self.name, 'birth_date': self.birth_date, 'gender': self.gender}


# =============================================================================
# PARSING
# =============================================================================

def parse_event(record: Mapping[str, Any]) -> LifeEvent:
    """
    Convert one generated record into a LifeEvent.

    Only the shape is checked. Ages outside 0..80 and impacts outside
    -10..10 are kept as they are.
    """
    if not isinstance(record, Mapping):
        raise InvalidEventError(f"Event must be an object, got {type(record).__name__}")

    missing = [key for key in ('age', 'content', 'impact') if key not in record]
    if missing:
        raise InvalidEventError(f"Event is missing {', '.join(missing)}: {record!r}")

    age = record['age']
    if isinstance(age, bool) or not isinstance(age, (int, float)):
        raise InvalidEventError(f"Event age must be an integer, got {age!r}")
    if isinstance(age, float) and not age.is_integer():
        raise InvalidEventError(f"Event age must be an integer, got {age!r}")

    impact = record['impact']
    if isinstance(impact, bool) or not isinstance(impact, (int, float)):
        raise InvalidEventError(f"Event impact must be a number, got {impact!r}")
    if not math.isfinite(impact):
        raise InvalidEventError(f"Event impact must be finite, got {impact!r}")

    # Generated JSON calls it 'type', our records call it 'category'
    category = str(record.get('category', record.get('type', 'RANDOM'))).upper()
    if category not in EVENT_CATEGORIES:
        logger.debug(f"Unknown event category '{category}' kept as-is")

    return LifeEvent(
        age=int(age),
        content=str(record['content']),
        impact=float(impact),
        category=category,
    )


def parse_events(records: Union[str, Iterable[Mapping[str, Any]]]) -> List[LifeEvent]:
    """
    Parse a whole script, from JSON text or already-decoded records.

    Returns events sorted by age; events sharing an age keep their order.
    """
    if isinstance(records, str):
        if not records.strip():
            raise InvalidEventError("Empty script response")
        try:
            records = json.loads(records)
        except json.JSONDecodeError as e:
            raise InvalidEventError(f"Script is not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise InvalidEventError(f"Script must be a list of events, got {type(records).__name__}")

    events = [parse_event(r) for r in records]
    return sorted(events, key=lambda e: e.age)


def fallback_script() -> List[LifeEvent]:
    """The fixed script used whenever generation is not possible."""
    return parse_events(FALLBACK_EVENTS)


# =============================================================================
# SCRIPT GENERATION
# =============================================================================

def generate_life_script(
    profile: UserProfile,
    generator: Optional[ScriptGenerator] = None
) -> List[LifeEvent]:
    """
    Produce the life script for a profile.

    Never raises: any failure of the generator or of its output falls
    back to the fixed script, so the simulated life always goes ahead.

    Args:
        profile: Who the life belongs to
        generator: Callable returning JSON text or a list of event records.
                   None means no generator is configured.

    Returns:
        Events sorted by age
    """
    if generator is None:
        logger.warning("No script generator configured, using fallback script")
        return fallback_script()

    try:
        raw = generator(profile)
        if raw is None:
            raise InvalidEventError("Empty script response")
        events = parse_events(raw)
    except Exception as e:
        logger.error(f"Script generation failed for {profile.name}: {e}")
        return fallback_script()

    logger.info(f"Generated {len(events)} life events for {profile.name}")
    return events


# =============================================================================
# QUICK TEST
# =============================================================================

if __name__ == "__main__":
    demo = UserProfile(name='Demo', birth_date='1990-01-01')
    script = generate_life_script(demo)

    print("=== Fallback Script ===\n")
    for event in script:
        print(f"  Age {event.age:>2} [{event.category:<6}] {event.impact:+5.1f}  {event.content}")
