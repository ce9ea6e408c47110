"""Shell-like argument splitting for command remainders."""

from __future__ import annotations


def parse_args(argstring: str) -> list[str]:
    """Split ``argstring`` into arguments.

    Whitespace separates arguments, double quotes group text (whitespace
    included) and a backslash escapes the following character. Outside quotes
    an escape is only meaningful before whitespace or ``"``; inside quotes only
    before ``"`` or ``\\``. Any other escaped character is kept together with
    its backslash.

    Malformed input never raises: an unterminated quote swallows the rest of
    the input into the last argument and a trailing backslash is kept as is.

    >>> parse_args('add "New York" 5')
    ['add', 'New York', '5']
    >>> parse_args(r'say \\"hi\\" there')
    ['say', '"hi"', 'there']
    """
    args: list[str] = []
    arg: list[str] = []
    in_quotes = False
    escape = False

    for c in argstring:
        if escape:
            escape = False
            if in_quotes:
                literal = c in ('"', "\\")
            else:
                literal = c.isspace() or c == '"'
            arg.append(c if literal else "\\" + c)
        elif c == "\\":
            escape = True
        elif in_quotes:
            if c == '"':
                in_quotes = False
            else:
                arg.append(c)
        elif c == '"':
            in_quotes = True
        elif c.isspace():
            if arg:
                args.append("".join(arg))
                arg = []
        else:
            arg.append(c)

    if escape:
        arg.append("\\")
    if arg:
        args.append("".join(arg))
    return args
