"""Text templates written during init and create.

Constants ending in ``_TEMPLATE`` are rendered with :func:`str.format_map`,
so literal braces are doubled. Constants ending in ``_FILE`` are written
verbatim.
"""

CLANG_FORMAT_TEMPLATE = """# Generated by stm32-project-tool on {date} for {author}
---
Language: Cpp
BasedOnStyle: LLVM
IndentWidth: 4
TabWidth: 4
UseTab: Never
ColumnLimit: 100
BreakBeforeBraces: Allman
AllowShortFunctionsOnASingleLine: None
AllowShortIfStatementsOnASingleLine: Never
AlignConsecutiveMacros: true
AlignTrailingComments: true
PointerAlignment: Right
SortIncludes: false
...
"""

APP_H_TEMPLATE = """/**
 * @file    app.h
 * @author  {author}
 * @date    {date}
 * @brief   User application entry points.
 *
 * This header is force-included into every translation unit so that user
 * code can hook into the generated sources without editing them.
 *
 * Copyright (c) {year} {author}
 */
#ifndef APP_H
#define APP_H

#ifdef __cplusplus
extern "C" {{
#endif

void app_init(void);
void app_loop(void);

#ifdef __cplusplus
}}
#endif

#endif /* APP_H */
"""

APP_C_TEMPLATE = """/**
 * @file    app.c
 * @author  {author}
 * @date    {date}
 * @brief   User application.
 *
 * Copyright (c) {year} {author}
 */
#include "app.h"

void app_init(void)
{{
}}

void app_loop(void)
{{
}}
"""

USER_CODE_README_TEMPLATE = """# UserCode

Created by {author} on {date}. Everything under this directory is yours;
STM32CubeMX never touches it.

| Directory     | Contents                                         |
|---------------|--------------------------------------------------|
| `bsp`         | Board support: pin maps, clocks, board bring-up  |
| `drivers`     | Drivers for external chips and peripherals       |
| `third_party` | Vendored libraries                               |
| `libs`        | Reusable in-house libraries                      |
| `interfaces`  | Abstract interfaces shared between layers        |
| `controllers` | Control loops and state machines                 |
| `app`         | Application entry (`app.h` is force-included)    |
"""

# Written verbatim: the ${...} placeholders belong to STM32CubeMX.
CLION_CMAKELISTS_TEMPLATE_FILE = """#THIS FILE IS AUTO GENERATED FROM THE TEMPLATE! DO NOT CHANGE!
set(CMAKE_SYSTEM_NAME Generic)
set(CMAKE_SYSTEM_VERSION 1)
cmake_minimum_required(VERSION 3.7)

# specify cross compilers and tools
set(CMAKE_C_COMPILER arm-none-eabi-gcc)
set(CMAKE_CXX_COMPILER arm-none-eabi-g++)
set(CMAKE_ASM_COMPILER  arm-none-eabi-gcc)
set(CMAKE_AR arm-none-eabi-ar)
set(CMAKE_OBJCOPY arm-none-eabi-objcopy)
set(CMAKE_OBJDUMP arm-none-eabi-objdump)
set(SIZE arm-none-eabi-size)
set(CMAKE_TRY_COMPILE_TARGET_TYPE STATIC_LIBRARY)

# project settings
project(${projectName} C CXX ASM)
set(CMAKE_CXX_STANDARD 17)
set(CMAKE_C_STANDARD 11)

#Uncomment for hardware floating point
#add_compile_definitions(ARM_MATH_CM4;ARM_MATH_MATRIX_CHECK;ARM_MATH_ROUNDING)
#add_compile_options(-mfloat-abi=hard -mfpu=fpv4-sp-d16)
#add_link_options(-mfloat-abi=hard -mfpu=fpv4-sp-d16)

#Uncomment for software floating point
#add_compile_options(-mfloat-abi=soft)

add_compile_options(-mcpu=${mcpu} -mthumb -mthumb-interwork)
add_compile_options(-ffunction-sections -fdata-sections -fno-common -fmessage-length=0)

# uncomment to mitigate c++17 absolute addresses warnings
#set(CMAKE_CXX_FLAGS "${CMAKE_CXX_FLAGS} -Wno-register")

# Enable assembler files preprocessing
add_compile_options($<$<COMPILE_LANGUAGE:ASM>:-x$<SEMICOLON>assembler-with-cpp>)

if ("${CMAKE_BUILD_TYPE}" STREQUAL "Release")
    message(STATUS "Maximum optimization for speed")
    add_compile_options(-Ofast)
elseif ("${CMAKE_BUILD_TYPE}" STREQUAL "RelWithDebInfo")
    message(STATUS "Maximum optimization for speed, debug info included")
    add_compile_options(-Ofast -g)
elseif ("${CMAKE_BUILD_TYPE}" STREQUAL "MinSizeRel")
    message(STATUS "Maximum optimization for size")
    add_compile_options(-Os)
else ()
    message(STATUS "Minimal optimization, debug info included")
    add_compile_options(-Og -g)
endif ()

include_directories(${includes})

add_definitions(${defines})

file(GLOB_RECURSE SOURCES ${sources})

set(LINKER_SCRIPT ${CMAKE_SOURCE_DIR}/${linkerScript})

add_link_options(-Wl,-gc-sections,--print-memory-usage,-Map=${PROJECT_BINARY_DIR}/${PROJECT_NAME}.map)
add_link_options(-mcpu=${mcpu} -mthumb -mthumb-interwork)
add_link_options(-T ${LINKER_SCRIPT})

add_executable(${PROJECT_NAME}.elf ${SOURCES} ${LINKER_SCRIPT})

set(HEX_FILE ${PROJECT_BINARY_DIR}/${PROJECT_NAME}.hex)
set(BIN_FILE ${PROJECT_BINARY_DIR}/${PROJECT_NAME}.bin)

add_custom_command(TARGET ${PROJECT_NAME}.elf POST_BUILD
        COMMAND ${CMAKE_OBJCOPY} -Oihex $<TARGET_FILE:${PROJECT_NAME}.elf> ${HEX_FILE}
        COMMAND ${CMAKE_OBJCOPY} -Obinary $<TARGET_FILE:${PROJECT_NAME}.elf> ${BIN_FILE}
        COMMENT "Building ${HEX_FILE}
Building ${BIN_FILE}")
"""

# STM32CubeMX script run by ``create`` to make the .ioc file.
CREATE_SCRIPT_1_TEMPLATE = """load {mcu}
project name {project_name}
project toolchain "{toolchain}"
project path {project_dir}
project generateunderroot {generate_under_root_flag}
config saveas {ioc_file_path}
exit
"""

# STM32CubeMX script run by ``create`` after the .ioc has been patched.
CREATE_SCRIPT_2_TEMPLATE = """config load {ioc_file_path}
project toolchain "{toolchain}"
project generateunderroot {generate_under_root_flag}
project couplefilesbyip 1
project generate
exit
"""

# Memory Management Tool section for STM32H723VETx; replaces every MMT line.
H723_DEFAULT_MMT_FILE = """MMTAppRegionsCount=0
MMTConfigApplied=false
"""
