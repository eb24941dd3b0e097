"""Type-string helpers for canonical signature handling."""

import re
from typing import List, Optional, Tuple

_IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')
_ARRAY_SUFFIX = re.compile(r'(\[\d*\])$')
_INT_SIZES = '|'.join(str(bits) for bits in range(256, 0, -8))
_ELEMENTARY_TYPE = re.compile(
    rf'^(address|bool|string|bytes([1-9]|[12][0-9]|3[0-2])?|u?int({_INT_SIZES}))$'
)

STORAGE_KEYWORDS = {'calldata', 'memory', 'storage', 'payable', 'indexed'}


def split_parameter_types(params_str: str) -> List[str]:
    """
    Split a comma-separated parameter list while respecting nested tuples.

    "address,(uint256,bytes)[],bool" -> ["address", "(uint256,bytes)[]", "bool"]

    Args:
        params_str: Parameter list without the surrounding parentheses

    Returns:
        List of parameter strings (stripped, empty entries dropped)
    """
    params = []
    current = []
    depth = 0

    for char in params_str:
        if char == '(':
            depth += 1
            current.append(char)
        elif char == ')':
            depth -= 1
            current.append(char)
        elif char == ',' and depth == 0:
            # Top-level comma - parameter separator
            params.append(''.join(current).strip())
            current = []
        else:
            current.append(char)

    if current:
        params.append(''.join(current).strip())

    return [p for p in params if p]


def normalize_type_aliases(param_type: str) -> str:
    """
    Normalize Solidity type aliases to their canonical forms.

    Solidity allows shorthand aliases:
    - uint = uint256
    - int = int256
    - byte = bytes1

    Tuple types are normalized component-wise.
    """
    param_type = param_type.strip()
    if param_type.startswith('tuple('):
        param_type = param_type[len('tuple'):]

    if param_type.startswith('('):
        inner, suffix = split_tuple_type(param_type)
        if inner is None:
            return param_type
        components = [normalize_type_aliases(c) for c in split_parameter_types(inner)]
        return f"({','.join(components)}){suffix}"

    base_type = param_type
    array_suffix = ''
    if '[' in param_type:
        bracket_pos = param_type.index('[')
        base_type = param_type[:bracket_pos]
        array_suffix = param_type[bracket_pos:]

    if base_type == 'uint':
        base_type = 'uint256'
    elif base_type == 'int':
        base_type = 'int256'
    elif base_type == 'byte':
        base_type = 'bytes1'

    return base_type + array_suffix


def split_tuple_type(param_type: str) -> Tuple[Optional[str], str]:
    """
    Split "(a,b)[2][]" into its inner component list and trailing suffix.

    Returns:
        (inner, suffix) or (None, '') when the type is not a tuple
    """
    if not param_type.startswith('('):
        return None, ''

    depth = 0
    for i, char in enumerate(param_type):
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0:
                return param_type[1:i], param_type[i + 1:].strip()
    return None, ''


def tuple_components(param_type: str) -> List[str]:
    """Component types of a (non-array) tuple type."""
    inner, _ = split_tuple_type(param_type)
    if inner is None:
        return []
    return split_parameter_types(inner)


def is_tuple_type(param_type: str) -> bool:
    return param_type.startswith('(') and not is_array_type(param_type)


def is_array_type(param_type: str) -> bool:
    return bool(_ARRAY_SUFFIX.search(param_type.strip()))


def array_element_type(param_type: str) -> str:
    """Strip the outermost array dimension: "uint256[][3]" -> "uint256[]"."""
    return _ARRAY_SUFFIX.sub('', param_type.strip(), count=1)


def is_dynamic_array(param_type: str) -> bool:
    return param_type.strip().endswith('[]')


def is_integer_type(param_type: str) -> bool:
    return bool(re.match(r'^u?int\d*$', param_type))


def is_bytes_type(param_type: str) -> bool:
    return bool(re.match(r'^bytes\d*$', param_type))


def is_reference_type(param_type: str) -> bool:
    """Types that need a data location in an external function declaration."""
    return (
        param_type in ('bytes', 'string')
        or is_array_type(param_type)
        or param_type.startswith('(')
    )


def parse_signature(signature: str) -> Tuple[str, List[str]]:
    """
    Parse "name(type,...)" into its function name and parameter type list.

    Parameter names and storage keywords are dropped:
    "transfer(address to, uint256 amount)" -> ("transfer", ["address", "uint256"])

    Raises:
        ValueError: if the signature has no parameter list
    """
    signature = signature.strip()
    if '(' not in signature or not signature.endswith(')'):
        raise ValueError(f"Malformed function signature: {signature!r}")

    func_name = signature[:signature.index('(')].strip()
    params_str = signature[signature.index('(') + 1:-1]

    types = []
    for param in split_parameter_types(params_str):
        # ABI JSON spells tuples as "tuple(...)"
        if param.startswith('tuple('):
            param = param[len('tuple'):]
        if param.startswith('('):
            inner, suffix = split_tuple_type(param)
            if inner is None:
                raise ValueError(f"Unbalanced tuple in signature: {signature!r}")
            # Drop a trailing parameter name after the tuple / array suffix
            suffix_tokens = suffix.split()
            array_part = suffix_tokens[0] if suffix_tokens and suffix_tokens[0].startswith('[') else ''
            inner_types = [parse_signature(f"t({c})")[1][0] for c in split_parameter_types(inner)]
            types.append(f"({','.join(inner_types)}){array_part}")
        else:
            tokens = [t for t in param.split() if t not in STORAGE_KEYWORDS]
            if not tokens:
                continue
            param_type = tokens[0]
            # Handle arrays split like "uint256 [ ]"
            if len(tokens) > 1 and tokens[1].startswith('['):
                param_type += tokens[1]
            types.append(normalize_type_aliases(param_type))

    return func_name, types


def canonical_signature(signature: str) -> str:
    """
    Normalize a function signature to name and parameter types only.

    "approve(address spender, uint amount)" -> "approve(address,uint256)"
    """
    func_name, types = parse_signature(signature)
    return f"{func_name}({','.join(types)})"


def is_valid_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name or ''))


def is_canonical_type(param_type: str) -> bool:
    """
    True for a concrete ABI type usable in a Solidity declaration.

    Bare `tuple`, aliases like `uint` and empty tuples are not canonical.
    """
    param_type = (param_type or '').strip()
    if is_array_type(param_type):
        return is_canonical_type(array_element_type(param_type))
    if param_type.startswith('('):
        inner, suffix = split_tuple_type(param_type)
        if inner is None or suffix:
            return False
        components = split_parameter_types(inner)
        return bool(components) and all(is_canonical_type(c) for c in components)
    return bool(_ELEMENTARY_TYPE.match(param_type))


def is_canonical_signature(signature: str) -> bool:
    """True when every parameter of `name(type,...)` is a concrete ABI type."""
    try:
        name, types = parse_signature(signature)
    except ValueError:
        return False
    return is_valid_identifier(name) and all(is_canonical_type(t) for t in types)
