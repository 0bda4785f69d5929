from httpsbydefault.addons import preferences
from httpsbydefault.addons import redirects
from httpsbydefault.addons import tabtimes
from httpsbydefault.addons import upgrade


def default_addons():
    # HttpsUpgrade looks up the others by name, and must come last.
    return [
        preferences.Preferences(),
        tabtimes.TabTimes(),
        redirects.Redirects(),
        upgrade.HttpsUpgrade(),
    ]
