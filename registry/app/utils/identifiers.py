import uuid


def generate_registry_id() -> str:
    """
    Generate a time-ordered registry identifier.

    The 60-bit timestamp of a version 1 UUID is laid out most significant
    bits first (the version 6 field order), so identifiers issued later
    sort after earlier ones as plain strings.
    """
    source = uuid.uuid1()
    timestamp = source.time
    return str(
        uuid.UUID(
            fields=(
                timestamp >> 28,
                (timestamp >> 12) & 0xFFFF,
                0x6000 | (timestamp & 0x0FFF),
                source.clock_seq_hi_variant,
                source.clock_seq_low,
                source.node,
            )
        )
    )
