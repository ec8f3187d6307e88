from rich import print

from trellis import *

manager = CommandManager()
manager.register("core", manager.literal("tp").then(
    manager.argument("x", NUMBER).then(
        manager.argument("y", NUMBER).execute(lambda source, x, y: source.success(f"teleported to {x}, {y}"))
    )
))
manager.register("admin", manager.literal("ban").require("admin").then(
    manager.argument("who", STRING).execute(lambda source, who: source.success(f"{who} banned"))
))


if __name__ == '__main__':
    print(manager)
    source = ConsoleSource("demo", fancy=True)
    for line in ("/tp 10 20", "/tp foo 20", "/ban mallory", "/help"):
        manager.execute(source, line)
