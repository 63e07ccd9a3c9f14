"""Tests for reading STM32CubeMX Makefiles."""

from stm32tool.ide.makefile import parse_makefile, read_variables

MAKEFILE = """\
######################################
# target
######################################
TARGET = blinky

DEBUG = 1
OPT = -Og

# C sources
C_SOURCES =  \\
Core/Src/main.c \\
Core/Src/gpio.c

# ASM sources
ASM_SOURCES =  \\
startup_stm32f407xx.s

# C defines
C_DEFS =  \\
-DUSE_HAL_DRIVER \\
-DSTM32F407xx

# C includes
C_INCLUDES =  \\
-ICore/Inc \\
-IDrivers/STM32F4xx_HAL_Driver/Inc \\
-IDrivers/CMSIS/Include

LDSCRIPT = STM32F407VETx_FLASH.ld

all: $(BUILD_DIR)/$(TARGET).elf
\t$(CC) -c $(CFLAGS) $< -o $@
"""


class TestReadVariables:
    """Tests for variable assignment parsing."""

    def test_continuations(self):
        variables = read_variables(MAKEFILE)

        assert variables["C_SOURCES"] == ["Core/Src/main.c", "Core/Src/gpio.c"]

    def test_operators(self):
        text = "A = 1\nA += 2\nB ?= x\nB ?= y\nC := one\nC = two\n"

        variables = read_variables(text)

        assert variables == {"A": ["1", "2"], "B": ["x"], "C": ["two"]}

    def test_comments_and_recipes_ignored(self):
        text = "# X = 1\nY = 2 # trailing\n\tZ = 3\n"

        assert read_variables(text) == {"Y": ["2"]}


class TestParseMakefile:
    def test_cubemx_makefile(self):
        info = parse_makefile(MAKEFILE)

        assert info.target == "blinky"
        assert info.asm_sources == ["startup_stm32f407xx.s"]
        assert info.defines == ["USE_HAL_DRIVER", "STM32F407xx"]
        assert info.includes == [
            "Core/Inc",
            "Drivers/STM32F4xx_HAL_Driver/Inc",
            "Drivers/CMSIS/Include",
        ]
        assert info.ldscript == "STM32F407VETx_FLASH.ld"

    def test_empty(self):
        info = parse_makefile("")

        assert info.target is None
        assert info.includes == []
        assert info.ldscript is None
