import getpass


def print_help():
    print("""
Available commands:
  help                                   Show this help message
  parties                                List registered political parties
  party <id>                             Show one political party
  citizen [address]                      Show a citizen (defaults to this wallet)
  scores                                 Show the voting scores
  score <candidate>                      Show one candidate's score
  total                                  Show the total number of votes cast
  state                                  Show the election state and time left
  register_party <name> <abbreviation>   Register a political party (authority)
  register_citizen <name>                Register this wallet as a citizen
  register_voter                         Register this wallet as a voter
  register_candidate <party> <address>   Register a citizen as candidate (authority)
  vote <candidate>                       Vote for the candidate of a party slot
  exit                                   Exit the client

Arguments containing spaces must be quoted.
""")


def get_user_message():
    try:
        return input("> ")
    except EOFError:
        print("\nExiting.")
        return None


def get_passphrase():
    return getpass.getpass("Enter the wallet passphrase: ")


def check_field(value):
    if "|" in value or "\n" in value or "\r" in value:
        raise ValueError(f"Field {value!r} may not contain '|' or line breaks")
    return value


def build_signed_packet(wallet, command, args, passphrase=None):
    fields = [command, wallet.get_public_key()] + [check_field(str(arg)) for arg in args]
    message = "|".join(fields)
    return f"{message}|{wallet.sign(message, passphrase)}"


def format_table(rows, columns):
    """Render dict rows as a fixed-width text table; columns are (key, title) pairs."""
    widths = [
        max([len(title)] + [len(str(row[key])) for row in rows])
        for key, title in columns
    ]
    lines = [" | ".join(title.ljust(width) for (_, title), width in zip(columns, widths))]
    lines.append("-+-".join("-" * width for width in widths))
    for row in rows:
        lines.append(" | ".join(str(row[key]).ljust(width) for (key, _), width in zip(columns, widths)))
    return "\n".join(lines)
