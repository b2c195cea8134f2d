from pycyclet import (
    LoggerMiddleware, bind_many, bind_single, create_store, default_dispatcher, exec_action
)
from counter_store import counter_store


class ConsoleView:
    def force_update(self):
        print(f"🔄 view refresh: {counter_store.describe()}")


def render_badge(count, user, label):
    return f"[{label}] {user or 'anonymous'}: {count}"


if __name__ == "__main__":
    default_dispatcher.apply_middleware(LoggerMiddleware)

    user_store = create_store({
        "$login": lambda self, name: self.set({"name": name}),
    })

    # 單一 Store 綁定
    view = ConsoleView()
    on_attach, on_detach = bind_single(counter_store)
    on_attach(view)

    # 多 Store 衍生綁定
    Badge = bind_many(
        render_badge,
        [counter_store, user_store],
        lambda props: {"count": counter_store.get("count"), "user": user_store.get("name")},
    )
    badge = Badge({"label": "counter"})
    badge.attach()

    print("\n==== 開始測試基本操作 ====")
    exec_action("increment")
    exec_action("increment", 5)
    exec_action("decrement")
    exec_action("login", "ada")
    print(badge.rendered)

    on_detach(view)
    badge.detach()
    exec_action("reset", 10)

    print("\n==== 最終狀態 ====")
    print(counter_store.state)
