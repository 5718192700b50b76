"""Configuration for the Neovim host."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NeovimConfig(BaseModel):
    """Configuration for the Neovim host."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    executable: str = "nvim"
    # Extra --cmd commands run before the test file, after the runtime path is set
    extra_commands: Sequence[str] = ()
