"""Client constants and REPL configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "status", "pause", "resume", "cancel", "clear", "exit", "help"]

# Commands whose argument is a transfer id rather than a path
TRANSFER_ID_COMMANDS = ("pause", "resume", "cancel")

STYLE = Style.from_dict(
    {
        "prompt": "#2BB673 bold",
        "command": "#0088ff bold",
        "bottom-toolbar": "#222222 bg:#cccccc",
    }
)

GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
RESET = "\033[0m"

LOGO = f"""{GREEN}
   ___ _                 _                
  / __| |_ _  _ _ _  ___| |___  _ _ __   
 | (__| ' \\ || | ' \\|___| / / || | '_ \\  
  \\___|_||_\\_,_|_||_|   |_\\_\\\\_,_| .__/  
                                 |_|     
{RESET}"""

WELCOME_TITLE = "chunkup - resumable chunked uploads"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "chunkup> "

TOOLBAR_REFRESH_INTERVAL = 0.5

HELP_TEXT = """Available commands:
  upload <path> [path...]   Upload files in the background (one transfer per file)
  status                    Show progress of every transfer
  pause [id]                Pause one transfer, or all of them
  resume [id]               Resume one transfer, or all of them
  cancel [id]               Cancel one transfer, or all of them
  clear                     Clear screen and redisplay welcome message
  help                      Show this help
  exit                      Exit REPL (running transfers are cancelled)

Transfer ids are shown by 'upload' and 'status'.
Examples:
  upload ~/videos/talk.mp4 ~/backups/db.tar.gz
  pause 1
  resume
  status"""
