"""Lark grammar for calq formulas.

Supported syntax:
- Arithmetic: +, -, *, /, %, ^ (power, right associative)
- Comparison: =, !=, <>, <, >, <=, >=
- String concatenation: &
- Logical: and, or, not (case-insensitive)
- Variables: identifiers, case-insensitive, may contain dots after the first character
- Function calls: name(arg1, arg2, ...)
- Literals: numbers, single or double quoted strings, true/false
"""

FORMULA_GRAMMAR = r"""
    ?start: expression

    ?expression: or_expr

    ?or_expr: and_expr
        | or_expr _OR and_expr -> or_op

    ?and_expr: not_expr
        | and_expr _AND not_expr -> and_op

    ?not_expr: comparison
        | _NOT not_expr -> not_op

    ?comparison: concat
        | comparison "=" concat -> eq
        | comparison "!=" concat -> ne
        | comparison "<>" concat -> ne
        | comparison "<" concat -> lt
        | comparison ">" concat -> gt
        | comparison "<=" concat -> le
        | comparison ">=" concat -> ge

    ?concat: additive
        | concat "&" additive -> string_concat

    ?additive: multiplicative
        | additive "+" multiplicative -> add
        | additive "-" multiplicative -> sub

    ?multiplicative: power
        | multiplicative "*" power -> mul
        | multiplicative "/" power -> div
        | multiplicative "%" power -> mod

    ?power: unary
        | unary "^" power -> pow

    ?unary: atom
        | "-" unary -> neg
        | "+" unary -> pos

    ?atom: NUMBER -> number
        | STRING -> string
        | TRUE -> true
        | FALSE -> false
        | NAME -> identifier
        | function_call
        | "(" expression ")"

    function_call: NAME "(" [arguments] ")"

    arguments: expression ("," expression)*

    _AND.2: /and\b/i
    _OR.2: /or\b/i
    _NOT.2: /not\b/i
    TRUE.2: /true\b/i
    FALSE.2: /false\b/i

    NAME: /(?!(and|or|not|true|false)\b)[A-Za-z_][A-Za-z0-9_.]*/i

    STRING: /"[^"]*"/ | /'[^']*'/

    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""
