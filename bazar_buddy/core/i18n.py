"""English and Bengali interface strings.

Messages are looked up by their English text, so English needs no table and
a missing Bengali entry falls back to the English message.
"""

from typing import Dict, Optional

from .config import LANGUAGES, settings

BENGALI: Dict[str, str] = {
    # Labels
    "Dashboard": "ড্যাশবোর্ড",
    "Total Lists": "মোট তালিকা",
    "Total Items": "মোট আইটেম",
    "Total Spent": "মোট ব্যয়",
    "Avg. List Cost": "গড় তালিকা ব্যয়",
    "Spending History": "ব্যয়ের ইতিহাস",
    "Recent Lists": "সাম্প্রতিক তালিকা",
    "List Name": "তালিকার নাম",
    "Items": "আইটেম",
    "Est. Cost": "অনুমিত মূল্য",
    "Month": "মাস",
    "Year": "বছর",
    "Created On": "তৈরি হয়েছে",
    "Your Grocery Lists": "আপনার মুদি তালিকাগুলি",
    "You haven't created any grocery lists yet.": "আপনি এখনো কোন মুদি তালিকা তৈরি করেননি।",
    "No lists match your search.": "আপনার অনুসন্ধানের সাথে কোন তালিকা মেলে না।",
    "Item": "আইটেম",
    "Quantity": "পরিমাণ",
    "Unit": "একক",
    "Est. Price": "অনুমিত মূল্য",
    "Estimated Total": "অনুমানিত মোট",
    "Total:": "মোট:",
    "Created on": "তৈরি হয়েছে",
    "Generated by": "তৈরি করেছে",
    "Printed on": "মুদ্রণের তারিখ",
    "Not signed in.": "লগইন করা নেই।",
    # Notifications
    "Registration successful": "নিবন্ধন সফল হয়েছে",
    "Welcome to {app}!": "{app}-এ স্বাগতম!",
    "Registration failed": "নিবন্ধন ব্যর্থ হয়েছে",
    "Login successful": "লগইন সফল হয়েছে",
    "Welcome back to {app}!": "{app}-এ আবারও স্বাগতম!",
    "Login failed": "লগইন ব্যর্থ হয়েছে",
    "Logged out": "লগআউট হয়েছে",
    "You have been successfully logged out": "আপনি সফলভাবে লগআউট হয়েছেন",
    "Session expired": "সেশনের মেয়াদ শেষ",
    "Please sign in again": "অনুগ্রহ করে আবার লগইন করুন",
    "Could not restore session": "সেশন পুনরুদ্ধার করা যায়নি",
    "Reset failed": "রিসেট ব্যর্থ হয়েছে",
    "Check your email": "আপনার ইমেল দেখুন",
    "If an account exists, a reset code has been sent.": "অ্যাকাউন্ট থাকলে একটি রিসেট কোড পাঠানো হয়েছে।",
    "Password updated": "পাসওয়ার্ড আপডেট হয়েছে",
    "Sign in with your new password.": "নতুন পাসওয়ার্ড দিয়ে লগইন করুন।",
    "Could not load lists": "তালিকা লোড করা যায়নি",
    "Missing Information": "তথ্য অনুপস্থিত",
    "Please enter a list title": "অনুগ্রহ করে তালিকার শিরোনাম লিখুন",
    "Please add at least one item to your list": "অনুগ্রহ করে তালিকায় অন্তত একটি আইটেম যোগ করুন",
    "Invalid list": "অবৈধ তালিকা",
    "Not signed in": "লগইন করা নেই",
    "Please sign in to create lists": "তালিকা তৈরি করতে লগইন করুন",
    "Could not create list": "তালিকা তৈরি করা যায়নি",
    "List Created": "তালিকা তৈরি হয়েছে",
    "{title} has been created successfully.": "{title} সফলভাবে তৈরি হয়েছে।",
    "Could not update list": "তালিকা আপডেট করা যায়নি",
    "List Updated": "তালিকা আপডেট হয়েছে",
    "Your grocery list has been updated successfully.": "আপনার মুদি তালিকা সফলভাবে আপডেট হয়েছে।",
    "Could not delete list": "তালিকা মুছে ফেলা যায়নি",
    "List Deleted": "তালিকা মুছে ফেলা হয়েছে",
    "Your grocery list has been deleted.": "আপনার মুদি তালিকা মুছে ফেলা হয়েছে।",
    "Could not add item": "আইটেম যোগ করা যায়নি",
    "Could not update item": "আইটেম আপডেট করা যায়নি",
    "Could not remove item": "আইটেম সরানো যায়নি",
}


def resolve_language(language: Optional[str] = None) -> str:
    """The given language when supported, otherwise the configured default."""
    if language and language.strip().lower() in LANGUAGES:
        return language.strip().lower()
    return settings.language


def gettext(message: str, language: Optional[str] = None) -> str:
    if resolve_language(language) == "bn":
        return BENGALI.get(message, message)
    return message
