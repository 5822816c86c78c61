from .substitution   import (CaesarCipher, AffineCipher, SubstitutionCipher,
                             VigenereCipher, GCDCipher, PolybiusCipher)
from .transposition  import RouteCipher, ColumnarTranspositionCipher
from .matrix         import HillCipher
from .block_aes      import ManualAES
from .block_des      import ManualDES
from .library_block  import LibraryAESCipher, LibraryDESCipher
from .asymmetric     import RSACipher

__all__ = [
    "CaesarCipher",
    "AffineCipher",
    "SubstitutionCipher",
    "VigenereCipher",
    "GCDCipher",
    "PolybiusCipher",
    "RouteCipher",
    "ColumnarTranspositionCipher",
    "HillCipher",
    "ManualAES",
    "ManualDES",
    "LibraryAESCipher",
    "LibraryDESCipher",
    "RSACipher",
]
