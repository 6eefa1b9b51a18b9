"""CSV/JSON serialization for sample sequences and summaries."""

from .tabular import (
    read_reward_samples_csv,
    write_action_samples_csv,
    write_records_csv,
    write_reward_samples_csv,
    write_samples_json,
)

__all__ = [
    "read_reward_samples_csv",
    "write_action_samples_csv",
    "write_records_csv",
    "write_reward_samples_csv",
    "write_samples_json",
]
