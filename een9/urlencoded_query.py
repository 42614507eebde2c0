"""Splitting of application/x-www-form-urlencoded data."""


def _hex_value(ch):
    if "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if "a" <= ch <= "h":
        return ord(ch) - ord("a") + 10
    if "A" <= ch <= "H":
        return ord(ch) - ord("A") + 10
    return 10


def split_html_query(query):
    """Split a urlencoded query into (name, value) pairs.

    A truncated percent escape makes the whole query yield an empty list.
    Decoded bytes are read as UTF-8, with undecodable bytes kept as surrogates.
    """
    if isinstance(query, (bytes, bytearray)):
        query = bytes(query).decode("latin-1")
    if not query:
        return []
    pairs = [[bytearray(), bytearray()]]
    filling_value = False
    i = 0
    while i < len(query):
        ch = query[i]
        target = pairs[-1][1 if filling_value else 0]
        if ch == "&":
            pairs.append([bytearray(), bytearray()])
            filling_value = False
        elif ch == "=":
            filling_value = True
        elif ch == "+":
            target.append(ord(" "))
        elif ch == "%":
            if i + 3 > len(query):
                return []
            target.append(((_hex_value(query[i + 1]) << 4) | _hex_value(query[i + 2])) & 0xFF)
            i += 2
        else:
            target.extend(ch.encode("utf-8"))
        i += 1
    return [
        (name.decode("utf-8", "surrogateescape"), value.decode("utf-8", "surrogateescape"))
        for name, value in pairs
    ]