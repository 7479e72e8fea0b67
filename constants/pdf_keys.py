"""
PDF Dictionary Keys and Name Constants
"""

# Page Dictionary Keys (pikepdf names)
KEY_PARENT = "/Parent"
KEY_MEDIA_BOX = "/MediaBox"
KEY_CROP_BOX = "/CropBox"

# Resource Dictionary Keys (pdfminer)
KEY_FONT = "Font"

# Font Dictionary Keys (pdfminer dictionaries are keyed without the slash)
KEY_SUBTYPE = "Subtype"
KEY_BASE_FONT = "BaseFont"
KEY_ENCODING = "Encoding"
KEY_BASE_ENCODING = "BaseEncoding"
KEY_DIFFERENCES = "Differences"
KEY_FONT_DESCRIPTOR = "FontDescriptor"
KEY_FONT_BBOX = "FontBBox"
KEY_FONT_MATRIX = "FontMatrix"
KEY_CHAR_PROCS = "CharProcs"
KEY_DESCENDANT_FONTS = "DescendantFonts"
KEY_CID_TO_GID_MAP = "CIDToGIDMap"
KEY_FLAGS = "Flags"

# Embedded Font Programs
KEY_FONT_FILE = "FontFile"      # Type 1
KEY_FONT_FILE2 = "FontFile2"    # TrueType
KEY_FONT_FILE3 = "FontFile3"    # CFF or OpenType, see stream Subtype

# Font Subtypes
FONT_SUBTYPE_TYPE0 = "Type0"
FONT_SUBTYPE_TYPE1 = "Type1"
FONT_SUBTYPE_MM_TYPE1 = "MMType1"
FONT_SUBTYPE_TYPE3 = "Type3"
FONT_SUBTYPE_TRUETYPE = "TrueType"
FONT_SUBTYPE_CID_TYPE0 = "CIDFontType0"
FONT_SUBTYPE_CID_TYPE2 = "CIDFontType2"

# Font Descriptor Flags
FONT_FLAG_SYMBOLIC = 1 << 2
