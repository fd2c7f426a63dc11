"""Generator configuration."""

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin

DEFAULT_TRAIT_PATH = "crate::types::SizedOnDisk"
DEFAULT_IGNORE_ATTRIBUTE = "dignore"


@dataclass(frozen=True)
class GeneratorConfig(DataClassJsonMixin):
    """Names used in the generated code.

    trait_path is written fully qualified everywhere it appears, so the
    generated impl does not depend on what the caller has in scope.
    """

    trait_path: str = DEFAULT_TRAIT_PATH
    method: str = "size"
    return_type: str = "usize"
    ignore_attribute: str = DEFAULT_IGNORE_ATTRIBUTE
    indent: str = "    "

    @property
    def trait_name(self) -> str:
        return self.trait_path.rsplit("::", 1)[-1]
