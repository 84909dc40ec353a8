import struct


# Magic and layout
SIGNATURE = 0x315A5242  # u32 little endian, reads "BRZ1" on disk
MAGIC = struct.pack("<I", SIGNATURE)

EXTENSION = ".brzip"

# Record header (variable name in the middle):
#  - name_len i32
#  - name bytes (utf-8)
#  - uncompressed_len i64
#  - compressed_len i64
NAME_LEN_STRUCT = struct.Struct("<i")
SIZES_STRUCT = struct.Struct("<qq")


DEFAULT_BUFFER_SIZE = 0x10000  # 64 KiB

# Codec defaults
BROTLI_DEFAULT_QUALITY = 4
BROTLI_DEFAULT_LGWIN = 22
DEFLATE_DEFAULT_LEVEL = 6
