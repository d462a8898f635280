from appdeck.utils.paths import executable_of, identity_key, normalized_path, pretty_name, split_command


def test_split_quoted_path_with_arguments():
    exe, args = split_command('"C:\\Program Files\\App\\app.exe" --profile 1')
    assert exe == "C:\\Program Files\\App\\app.exe"
    assert args == "--profile 1"


def test_split_unquoted_windows_path_stops_after_exe():
    exe, args = split_command("C:\\Program Files\\App\\app.exe -new-window")
    assert exe == "C:\\Program Files\\App\\app.exe"
    assert args == "-new-window"


def test_split_posix_path_with_flags():
    assert split_command("/usr/bin/firefox --private %U") == ("/usr/bin/firefox", "--private %U")
    assert split_command("/usr/bin/gimp") == ("/usr/bin/gimp", "")


def test_identity_key_ignores_case_quotes_and_arguments():
    a = identity_key('"C:\\Apps\\Chrome.exe" --incognito')
    b = identity_key("c:\\apps\\chrome.exe")
    assert a == b == "c:\\apps\\chrome.exe"


def test_executable_of_empty():
    assert executable_of("") == ""
    assert identity_key(None) == ""


def test_normalized_path():
    assert normalized_path("C:\\Program Files\\Steam\\steam.exe") == "c:/program files/steam/steam.exe"


def test_pretty_name():
    assert pretty_name("my_cool-app.exe") == "My Cool App"
    assert pretty_name("/opt/tools/blender") == "Blender"
