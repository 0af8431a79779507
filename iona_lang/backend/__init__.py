"""Lowering and code emission for the C and LLVM targets."""
