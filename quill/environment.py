from typing import Dict, Optional, Set

from quill.errors import (
    DuplicateDeclarationError, ImmutableAssignmentError, UndeclaredVariableError,
)
from quill.values import RuntimeVal


class Environment:
    """A lexical scope mapping identifiers to runtime values.

    Scopes form a chain through `parent`. Resolution always starts in the
    innermost scope and walks strictly upward. Bindings declared constant
    (`const`, `final` and function declarations) cannot be reassigned.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.variables: Dict[str, RuntimeVal] = {}
        self.constants: Set[str] = set()

    def __contains__(self, identifier: str) -> bool:
        # own bindings only, ancestors are not consulted
        return identifier in self.variables

    def declare(self, identifier: str, value: RuntimeVal, constant: bool = False) -> RuntimeVal:
        if identifier in self.variables:
            raise DuplicateDeclarationError(identifier)
        self.variables[identifier] = value
        if constant:
            self.constants.add(identifier)
        return value

    def assign(self, identifier: str, value: RuntimeVal) -> RuntimeVal:
        env = self.resolve(identifier)
        if identifier in env.constants:
            raise ImmutableAssignmentError(identifier)
        env.variables[identifier] = value
        return value

    def lookup(self, identifier: str) -> RuntimeVal:
        return self.resolve(identifier).variables[identifier]

    def resolve(self, identifier: str) -> 'Environment':
        """Return the nearest scope in the chain that declares `identifier`."""
        env: Optional[Environment] = self
        while env is not None:
            if identifier in env.variables:
                return env
            env = env.parent
        raise UndeclaredVariableError(identifier)

    def is_constant(self, identifier: str) -> bool:
        return identifier in self.resolve(identifier).constants

    def depth(self) -> int:
        n = 0
        env = self.parent
        while env is not None:
            n += 1
            env = env.parent
        return n

    def __repr__(self) -> str:
        frames = []
        env: Optional[Environment] = self
        while env is not None:
            frames.append('{' + ', '.join(sorted(env.variables)) + '}')
            env = env.parent
        return '<Environment ' + ' -> '.join(frames) + '>'
