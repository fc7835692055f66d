"""Rule catalog: loading, validating and holding the ordered rule list."""

import re
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml
import jsonschema

from logshield.errors import CatalogError
from logshield.handlers import (
    HANDLERS,
    PASSWORD_PLACEHOLDER,
    PLACEHOLDER_RE,
    URL_PARAM_PLACEHOLDER,
)
from logshield.models import Examples, Rule, RuleGroup, RuleMode
from logshield.validators import VALIDATORS

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_CATALOG_PATH = DATA_DIR / "rules.yml"
SCHEMA_PATH = DATA_DIR / "rule-schema.json"

REGEX_FLAGS = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "ASCII": re.ASCII,
}


class RuleCatalog:
    """Immutable, ordered collection of compiled rules."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        """
        Freeze rules into a catalog.

        Args:
            rules: Rules in execution order

        Raises:
            CatalogError: If two rules share a name
        """
        self._rules: tuple[Rule, ...] = tuple(rules)
        self._by_name: dict[str, Rule] = {}

        for rule in self._rules:
            if rule.name in self._by_name:
                raise CatalogError(f"Duplicate rule name: {rule.name}")
            self._by_name[rule.name] = rule

    @property
    def rules(self) -> tuple[Rule, ...]:
        """Rules in execution order."""
        return self._rules

    @property
    def names(self) -> list[str]:
        """Rule names in execution order."""
        return [rule.name for rule in self._rules]

    def get_rule(self, name: str) -> Optional[Rule]:
        """Get rule by name."""
        return self._by_name.get(name)

    def for_groups(self, groups: Iterable[RuleGroup]) -> tuple[Rule, ...]:
        """Return the rules of the given groups, keeping catalog order."""
        wanted = frozenset(groups)
        return tuple(rule for rule in self._rules if rule.group in wanted)

    def placeholders(self) -> set[str]:
        """Return every reserved placeholder the catalog can emit."""
        found = {PASSWORD_PLACEHOLDER, URL_PARAM_PLACEHOLDER}
        for rule in self._rules:
            if rule.replacement:
                found.update(PLACEHOLDER_RE.findall(rule.replacement))
        return found

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        """Return number of rules."""
        return len(self._rules)

    def __repr__(self) -> str:
        """String representation."""
        return f"RuleCatalog(rules={len(self._rules)})"


def load_catalog(
    path: Optional[str] = None,
    validate_schema: bool = True,
    validate_examples: bool = True,
) -> RuleCatalog:
    """
    Load a rule table from YAML into a catalog.

    Every problem with a rule definition surfaces here, so a bad rule can
    never abort a sanitize call later.

    Args:
        path: Catalog file to load. If None, loads the bundled catalog.
        validate_schema: Whether to validate against JSON schema
        validate_examples: Whether to validate examples against patterns

    Returns:
        RuleCatalog with compiled rules

    Raises:
        FileNotFoundError: If catalog file not found
        CatalogError: If a rule definition is invalid
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    if not catalog_path.exists():
        raise FileNotFoundError(f"Rule catalog not found: {catalog_path}")

    logger.info(f"Loading rules from {catalog_path}")
    data = _load_yaml_file(catalog_path)

    if validate_schema:
        _validate_schema(data)

    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise CatalogError(f"Rule catalog {catalog_path} has no rules list")

    catalog = RuleCatalog(_compile_rule(rule_data) for rule_data in data["rules"])

    if validate_examples:
        for rule in catalog:
            if rule.examples:
                _validate_examples(rule)

    _validate_placeholders(catalog)

    logger.info(f"Loaded {len(catalog)} rules")
    return catalog


@lru_cache(maxsize=None)
def default_catalog() -> RuleCatalog:
    """Return the bundled catalog, built once per process."""
    return load_catalog()


def _load_yaml_file(path: Path) -> Any:
    """Load YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogError(f"Rule catalog {path} is not valid YAML: {e}") from e


def _validate_schema(data: Any) -> None:
    """Validate catalog data against JSON schema."""
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)

    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise CatalogError(f"Rule schema validation failed: {e.message}") from e


def _compile_rule(data: dict[str, Any]) -> Rule:
    """Compile a single rule definition."""
    try:
        name = data["name"]
        group = RuleGroup(data["group"])
        mode = RuleMode(data["mode"])
        pattern_str = data["pattern"]
    except (KeyError, ValueError) as e:
        raise CatalogError(f"Invalid rule definition {data.get('name', '?')}: {e}") from e

    # Parse regex flags
    flags = 0
    for flag_name in data.get("flags", []):
        if flag_name not in REGEX_FLAGS:
            raise CatalogError(f"Unknown regex flag for rule {name}: {flag_name}")
        flags |= REGEX_FLAGS[flag_name]

    # Compile pattern
    try:
        compiled = re.compile(pattern_str, flags)
    except re.error as e:
        raise CatalogError(f"Failed to compile rule {name}: {e}") from e

    replacement = data.get("replacement")
    handler = None
    if "handler" in data:
        handler = HANDLERS.get(data["handler"])
        if handler is None:
            raise CatalogError(f"Unknown handler for rule {name}: {data['handler']}")

    if (replacement is None) == (handler is None):
        raise CatalogError(f"Rule {name} needs exactly one of replacement or handler")

    if replacement is not None:
        # Template group references must resolve against the pattern
        for ref in re.findall(r"\\g<(\w+)>", replacement):
            if ref.isdigit():
                known = int(ref) <= compiled.groups
            else:
                known = ref in compiled.groupindex
            if not known:
                raise CatalogError(f"Rule {name} replacement references unknown group: {ref}")

        # Parse the template now; sub() parses a str template before searching
        try:
            compiled.sub(replacement, "")
        except (re.error, IndexError) as e:
            raise CatalogError(f"Rule {name} has an invalid replacement template: {e}") from e

    validator = None
    if "validator" in data:
        validator = VALIDATORS.get(data["validator"])
        if validator is None:
            raise CatalogError(f"Unknown validator for rule {name}: {data['validator']}")

    # Parse examples
    examples = None
    if "examples" in data:
        examples = Examples(
            match=tuple(data["examples"].get("match", [])),
            nomatch=tuple(data["examples"].get("nomatch", [])),
        )

    return Rule(
        name=name,
        group=group,
        mode=mode,
        pattern=pattern_str,
        compiled=compiled,
        replacement=replacement,
        handler=handler,
        validator=validator,
        description=data.get("description", ""),
        flags=tuple(data.get("flags", [])),
        examples=examples,
    )


def _validate_examples(rule: Rule) -> None:
    """Validate rule examples match/nomatch expectations."""
    if not rule.examples:
        return

    errors = []

    # Check that match examples match
    for example in rule.examples.match:
        if not rule.compiled.search(example):
            errors.append(f"Example should match but doesn't: '{example}'")

    # Check that nomatch examples don't match
    for example in rule.examples.nomatch:
        if rule.compiled.search(example):
            errors.append(f"Example should NOT match but does: '{example}'")

    if errors:
        error_msg = f"Rule {rule.name} example validation failed:\n" + "\n".join(errors)
        raise CatalogError(error_msg)

    logger.debug(f"Rule {rule.name} examples validated successfully")


def _validate_placeholders(catalog: RuleCatalog) -> None:
    """Reject rules whose pattern would re-match an inserted placeholder."""
    placeholders = sorted(catalog.placeholders())
    for rule in catalog:
        for placeholder in placeholders:
            if rule.compiled.search(placeholder):
                raise CatalogError(
                    f"Rule {rule.name} matches reserved placeholder {placeholder}"
                )
