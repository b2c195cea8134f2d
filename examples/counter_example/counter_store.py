from pycyclet import create_store

# ====== Handlers ======
def init(self):
    self.set({"count": 0, "history": ()})

def increment(self, amount=1):
    self.set({
        "count": self.get("count") + amount,
        "history": self.get("history") + (("increment", amount),),
    })

def decrement(self, amount=1):
    self.set({
        "count": self.get("count") - amount,
        "history": self.get("history") + (("decrement", amount),),
    })

def reset(self, value=0):
    self.set({"count": value, "history": ()})

def describe(self):
    return f"count={self.get('count')} after {len(self.get('history'))} changes"


# ====== Store ======
counter_store = create_store({
    "init": init,
    "$increment": increment,
    "$decrement": decrement,
    "$reset": reset,
    "describe": describe,
})
