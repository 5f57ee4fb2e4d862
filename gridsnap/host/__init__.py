"""
gridsnap.host - Host adapters.

    - win32     : Monitors, windows and pointer through pywin32
    - eventloop : WinEvent hook, global hotkeys and message loop
"""
