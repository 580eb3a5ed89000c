from emojibot.server import main

main()
