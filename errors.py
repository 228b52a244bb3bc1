class BitIndexError(IndexError): # bit position outside [0, length)
    pass


class InvalidBitStringError(ValueError): # anything that is not a 0/1 digit
    pass


class EmptyTreeError(ValueError): # value/child/leaf query on the empty tree
    pass


class UnknownSymbolError(KeyError): # symbol missing from the code table
    pass


class InvalidCodeTableError(ValueError): # code table that cannot form a prefix-code trie
    pass


class DecodeError(ValueError): # bits that do not tile into complete codes
    pass
