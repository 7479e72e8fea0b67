"""
PDF Operator Constants

Path construction operators as they appear in content streams and in the
segments pdfminer hands to its devices.

Reference: ISO 32000-1:2008, section 8.5.2
"""

# ==============================================================================
# Path Construction Operators (ISO 32000-1 8.5.2)
# ==============================================================================
OP_MOVETO = b'm'          # Begin new subpath (moveto)
OP_LINETO = b'l'          # Append straight line segment (lineto)
OP_CURVETO = b'c'         # Append cubic Bézier curve
OP_CURVETO_V = b'v'       # Append cubic Bézier curve (initial point replicated)
OP_CURVETO_Y = b'y'       # Append cubic Bézier curve (final point replicated)
OP_RECTANGLE = b're'      # Append rectangle
OP_CLOSEPATH = b'h'       # Close current subpath
