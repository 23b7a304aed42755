"""PyCHIP8: an object-oriented CHIP-8 virtual machine."""
