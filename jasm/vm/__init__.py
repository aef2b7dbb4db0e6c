# JAsm Machine: register file, ALU, call stack, execution engine.
#
# Kept import-free: jasm.decoder imports jasm.vm.regs, and jasm.vm.emu
# imports jasm.decoder.
