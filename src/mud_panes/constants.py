# Telnet constants (RFC 854-ish)
IAC = 255  # Interpret As Command
DONT = 254
DO = 253
WONT = 252
WILL = 251
SB = 250  # Subnegotiation Begin
GA = 249  # Go Ahead
NOP = 241
SE = 240  # Subnegotiation End

# Options with a fixed negotiation stance
ECHO = 1  # RFC 857
SGA = 3  # Suppress Go Ahead
TTYPE = 24  # Terminal Type
NAWS = 31  # Negotiate About Window Size

TELNET_CMD_NAMES = {
    IAC: "IAC",
    DONT: "DONT",
    DO: "DO",
    WONT: "WONT",
    WILL: "WILL",
    SB: "SB",
    GA: "GA",
    NOP: "NOP",
    SE: "SE",
}

NEGOTIATION_CMDS = {DO, DONT, WILL, WONT}

TELNET_OPT_NAMES = {
    ECHO: "ECHO",
    SGA: "SGA",
    TTYPE: "TTYPE",
    NAWS: "NAWS",
}

# Peer says DO <opt>: what we answer. Anything not listed is refused with WONT.
DO_REPLIES = {
    SGA: WILL,
    TTYPE: WILL,
    ECHO: WONT,
}

# Peer says WILL <opt>. Anything not listed is refused with DONT.
# Refusing ECHO keeps local echo on the client side.
WILL_REPLIES = {
    SGA: DO,
    ECHO: DONT,
}

# Acknowledgement for a peer refusal
REFUSAL_ACKS = {
    DONT: WONT,
    WONT: DONT,
}
